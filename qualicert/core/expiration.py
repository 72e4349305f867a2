from datetime import date, datetime
from typing import Iterable, Optional, Union

from ..schema.certificate_models import ExpirationRisk, ExpirationSummary, RiskCategory

CRITICAL_DAYS = 30   # < 30 dias: crítico
WARNING_DAYS = 90    # 30-89 dias: atenção; >= 90: seguro

DateLike = Union[date, datetime]


def days_until(expiration_date: DateLike, as_of: Optional[DateLike] = None) -> int:
    """Dias inteiros (floor) até o vencimento; negativo se já venceu."""
    if as_of is None:
        as_of = datetime.now()

    if not isinstance(expiration_date, datetime) or not isinstance(as_of, datetime):
        # qualquer lado só com data: compara por dia de calendário
        exp_day = expiration_date.date() if isinstance(expiration_date, datetime) else expiration_date
        ref_day = as_of.date() if isinstance(as_of, datetime) else as_of
        return (exp_day - ref_day).days

    if (expiration_date.tzinfo is None) != (as_of.tzinfo is None):
        expiration_date = expiration_date.replace(tzinfo=None)
        as_of = as_of.replace(tzinfo=None)

    # timedelta.days já é o floor, inclusive para diferenças negativas
    return (expiration_date - as_of).days


def category_for(days: int) -> RiskCategory:
    if days < 0:
        return RiskCategory.EXPIRED
    if days < CRITICAL_DAYS:
        return RiskCategory.CRITICAL
    if days < WARNING_DAYS:
        return RiskCategory.WARNING
    return RiskCategory.SAFE


def classify_expiration(expiration_date: DateLike, as_of: Optional[DateLike] = None) -> ExpirationRisk:
    days = days_until(expiration_date, as_of)
    return ExpirationRisk(days_until=days, category=category_for(days))


def summarize_expirations(
    expiration_dates: Iterable[DateLike],
    as_of: Optional[DateLike] = None,
) -> ExpirationSummary:
    """Contagem por categoria para o gráfico de vencimentos do dashboard."""
    if as_of is None:
        as_of = datetime.now()

    counts = {category: 0 for category in RiskCategory}
    for expiration_date in expiration_dates:
        counts[classify_expiration(expiration_date, as_of).category] += 1

    return ExpirationSummary(
        expired=counts[RiskCategory.EXPIRED],
        critical=counts[RiskCategory.CRITICAL],
        warning=counts[RiskCategory.WARNING],
        safe=counts[RiskCategory.SAFE],
    )
