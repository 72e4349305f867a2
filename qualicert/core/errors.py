from typing import Optional


class NFeImportError(Exception):
    """Base de todos os erros fatais da importação de XML NF-e."""


class ParseError(NFeImportError):
    """Entrada não é um XML bem formado (mensagem do parser preservada)."""


class MalformedDocumentError(NFeImportError):
    """XML válido, mas nenhuma estrutura de NF-e reconhecida."""


class MissingFieldError(NFeImportError):
    """Estrutura reconhecida, mas falta um bloco/campo obrigatório."""

    def __init__(self, field: str, role: Optional[str] = None):
        self.field = field
        self.role = role
        if role:
            message = f"Missing required field '{field}' for {role}"
        else:
            message = f"Missing required field '{field}'"
        super().__init__(message)
