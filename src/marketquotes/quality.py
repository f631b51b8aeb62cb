"""Data quality validation for normalized quotes and historical series."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from marketquotes.models.bar import HistoricalBar
from marketquotes.models.quote import QuoteData


@dataclass
class ValidationCheck:
    """Single validation check result."""

    name: str
    passed: bool
    message: str = ""


@dataclass
class ValidationResult:
    """Aggregate validation result."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failed_checks(self) -> list[ValidationCheck]:
        return [c for c in self.checks if not c.passed]

    def summary(self) -> str:
        return "; ".join(f"{c.name}: {c.message}" for c in self.failed_checks)


def percent_tolerance(change_percent: float, previous_close: float) -> float:
    """Allowed gap between a reported and a recomputed change percent.

    Covers providers that round change, previous close, and percent to two
    decimals independently; the change rounding dominates for low-priced
    securities.
    """
    return 0.01 + 0.51 / previous_close + 0.01 * abs(change_percent)


def validate_quote(quote: QuoteData) -> ValidationResult:
    """Run all quality checks on a normalized quote.

    Checks:
        1. Finite numbers
        2. Non-negative price, high, low, open
        3. Non-negative volume
        4. change_percent consistent with change / previous_close
    """
    result = ValidationResult()

    # 1. Finite numbers
    numbers = {
        "price": quote.price,
        "change": quote.change,
        "change_percent": quote.change_percent,
        "high": quote.high,
        "low": quote.low,
        "open": quote.open,
        "previous_close": quote.previous_close,
    }
    bad = [name for name, val in numbers.items() if not math.isfinite(val)]
    if bad:
        result.checks.append(ValidationCheck("finite", False, f"non-finite {', '.join(bad)}"))
        return result
    result.checks.append(ValidationCheck("finite", True))

    # 2. Price sanity
    negative = [
        name for name in ("price", "high", "low", "open")
        if numbers[name] < 0
    ]
    if negative:
        result.checks.append(
            ValidationCheck("non_negative_prices", False, f"negative {', '.join(negative)}")
        )
    else:
        result.checks.append(ValidationCheck("non_negative_prices", True))

    # 3. Volume sanity
    if quote.volume < 0:
        result.checks.append(ValidationCheck("volume_sanity", False, f"volume {quote.volume}"))
    else:
        result.checks.append(ValidationCheck("volume_sanity", True))

    # 4. Percent consistency (undefined without a previous close)
    if quote.previous_close > 0:
        expected = quote.change / quote.previous_close * 100
        gap = abs(expected - quote.change_percent)
        if gap > percent_tolerance(quote.change_percent, quote.previous_close):
            result.checks.append(ValidationCheck(
                "percent_consistency",
                False,
                f"reported {quote.change_percent:.4f}% vs computed {expected:.4f}%",
            ))
        else:
            result.checks.append(ValidationCheck("percent_consistency", True))

    return result


def validate_bars(bars: list[HistoricalBar]) -> ValidationResult:
    """Run quality checks on a normalized historical series.

    Checks:
        1. Non-negative OHLC and volume
        2. OHLC consistency (high >= low, high >= open/close)
        3. Descending timestamp order
    """
    result = ValidationResult()

    # 1. Sign sanity
    negative = sum(
        1 for b in bars
        if min(b.open, b.high, b.low, b.close) < 0 or b.volume < 0
    )
    if negative:
        result.checks.append(ValidationCheck("non_negative", False, f"{negative} bars with negative values"))
    else:
        result.checks.append(ValidationCheck("non_negative", True))

    # 2. OHLC consistency
    inconsistent = 0
    for b in bars:
        if b.high < b.low:
            inconsistent += 1
        elif b.high < b.open or b.high < b.close:
            inconsistent += 1
        elif b.low > b.open or b.low > b.close:
            inconsistent += 1
    if inconsistent:
        result.checks.append(
            ValidationCheck("ohlc_consistency", False, f"{inconsistent} bars with H<L or H<O/C")
        )
    else:
        result.checks.append(ValidationCheck("ohlc_consistency", True))

    # 3. Newest first
    out_of_order = sum(
        1 for i in range(1, len(bars))
        if bars[i].timestamp > bars[i - 1].timestamp
    )
    if out_of_order:
        result.checks.append(ValidationCheck("descending_order", False, f"{out_of_order} out of order"))
    else:
        result.checks.append(ValidationCheck("descending_order", True))

    return result
