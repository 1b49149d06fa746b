"""
Price resolver.

WHAT: Pure functions that pick the markup rule for a product and turn its
cost into B2B and retail sale prices.

WHY: Prices are computed on every product listing, every proposal line and
every pricing history row. Keeping the computation free of I/O means the
same inputs always give the same prices, and the rules can be tested
without a database.

HOW:
1. Keep active rules whose target matches the product (global always matches)
2. Pick the highest priority; on equal priority the more specific scope
   wins (brand > manufacturer > category > global), then input order
3. computed = cost * (1 + markup / 100), per price kind
4. Clamp into the rule's [min, max] (only the violated side)
5. A manual override, when set, replaces the computed price

Inputs are duck-typed: ORM rows and plain objects with the same attribute
names both work.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, List, Optional, Sequence

from app.models.markup_rule import MarkupRuleType


CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Markups above this are accepted but flagged; they are almost always typos
MARKUP_WARNING_THRESHOLD = Decimal("1000")

# Tie-break order on equal priority, most specific first
SCOPE_ORDER: Sequence[MarkupRuleType] = (
    MarkupRuleType.BRAND,
    MarkupRuleType.MANUFACTURER,
    MarkupRuleType.CATEGORY,
    MarkupRuleType.GLOBAL,
)

# Product attribute each scoped rule type matches against
_PRODUCT_KEY = {
    MarkupRuleType.BRAND: "brand_id",
    MarkupRuleType.MANUFACTURER: "manufacturer_id",
    MarkupRuleType.CATEGORY: "category_id",
}


@dataclass(frozen=True)
class ResolvedPrice:
    """
    Result of pricing one product.

    Attributes:
        b2b_price: Final B2B price
        retail_price: Final retail price
        applied_rule: Winning rule, or None when no rule matched
        b2b_margin_percent: (b2b - cost) / b2b * 100
        retail_margin_percent: (retail - cost) / retail * 100
    """

    b2b_price: Decimal
    retail_price: Decimal
    applied_rule: Optional[Any] = None
    b2b_margin_percent: Decimal = ZERO
    retail_margin_percent: Decimal = ZERO


@dataclass
class PricingValidation:
    """Outcome of validate_pricing_constraints."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Coerce a numeric value to Decimal.

    Args:
        value: int, float, str, Decimal or None

    Returns:
        Decimal, or None for None / unparseable input
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _rule_type(rule: Any) -> Optional[MarkupRuleType]:
    raw = getattr(rule, "type", None)
    if raw is None:
        return None
    try:
        return MarkupRuleType(raw)
    except ValueError:
        return None


def rule_matches(rule: Any, product: Any) -> bool:
    """
    Check whether an active rule applies to a product.

    WHY: A non-global rule with no target never matches, even when the
    product's corresponding id is also empty.

    Args:
        rule: Markup rule
        product: Product

    Returns:
        True if the rule is active and targets the product (or is global)
    """
    if not getattr(rule, "is_active", True):
        return False

    rule_type = _rule_type(rule)
    if rule_type == MarkupRuleType.GLOBAL:
        return True
    if rule_type is None:
        return False

    target_id = getattr(rule, "target_id", None)
    if target_id is None:
        return False
    return getattr(product, _PRODUCT_KEY[rule_type], None) == target_id


def select_rule(product: Any, rules: Iterable[Any]) -> Optional[Any]:
    """
    Pick the single rule that prices a product.

    WHAT: Highest priority wins. On equal priority, scope order
    (brand > manufacturer > category > global) decides, then the order
    rules were given in.

    Args:
        product: Product to price
        rules: Candidate rules (any order, inactive/non-matching are skipped)

    Returns:
        Winning rule or None
    """
    buckets = {rule_type: [] for rule_type in SCOPE_ORDER}
    for rule in rules:
        if rule_matches(rule, product):
            buckets[_rule_type(rule)].append(rule)

    best = None
    best_priority = None
    for rule_type in SCOPE_ORDER:
        for rule in buckets[rule_type]:
            priority = getattr(rule, "priority", 0) or 0
            # Strictly greater: the first maximum in scope order is kept
            if best is None or priority > best_priority:
                best = rule
                best_priority = priority
    return best


def price_by_markup(cost: Optional[Decimal], markup_percent: Optional[Decimal]) -> Decimal:
    """
    cost * (1 + markup / 100); zero when there is no positive cost.
    """
    if cost is None or cost <= ZERO:
        return ZERO
    markup = markup_percent if markup_percent is not None else ZERO
    return cost * (1 + markup / HUNDRED)


def clamp(
    price: Decimal,
    min_price: Optional[Decimal],
    max_price: Optional[Decimal],
) -> Decimal:
    """
    Clamp a price into optional bounds.

    WHY: A bound of 0 is a real bound; only a missing bound is no constraint.
    """
    if min_price is not None and price < min_price:
        price = min_price
    if max_price is not None and price > max_price:
        price = max_price
    return price


def margin_percent(cost: Optional[Decimal], price: Decimal) -> Decimal:
    """
    Gross margin of a sale price, in percent of the price.

    Returns:
        0 when the price is not positive
    """
    if price <= ZERO:
        return ZERO
    return quantize_money((price - (cost or ZERO)) / price * HUNDRED)


def _resolve_kind(
    cost: Optional[Decimal],
    rule: Optional[Any],
    markup_attr: str,
    min_attr: str,
    max_attr: str,
    manual: Optional[Decimal],
) -> Decimal:
    if manual is not None:
        return quantize_money(manual)
    if rule is None:
        return ZERO.quantize(CENT)

    computed = price_by_markup(cost, to_decimal(getattr(rule, markup_attr, None)))
    bounded = clamp(
        computed,
        to_decimal(getattr(rule, min_attr, None)),
        to_decimal(getattr(rule, max_attr, None)),
    )
    return quantize_money(bounded)


def resolve_price(product: Any, rules: Iterable[Any]) -> ResolvedPrice:
    """
    Resolve B2B and retail prices for a product.

    Never raises: missing cost, missing rules or malformed numbers degrade
    to a price of 0.

    Args:
        product: Object with cost, manual_b2b_price, manual_retail_price,
            brand_id, manufacturer_id, category_id
        rules: Markup rules to choose from

    Returns:
        ResolvedPrice

    Example:
        cost 100, brand rule (priority 10, +20%), global rule (priority 1, +50%)
        -> b2b_price 120.00
    """
    cost = to_decimal(getattr(product, "cost", None))
    rule = select_rule(product, rules)

    b2b = _resolve_kind(
        cost,
        rule,
        "b2b_markup_percent",
        "min_b2b_price",
        "max_b2b_price",
        to_decimal(getattr(product, "manual_b2b_price", None)),
    )
    retail = _resolve_kind(
        cost,
        rule,
        "retail_markup_percent",
        "min_retail_price",
        "max_retail_price",
        to_decimal(getattr(product, "manual_retail_price", None)),
    )

    return ResolvedPrice(
        b2b_price=b2b,
        retail_price=retail,
        applied_rule=rule,
        b2b_margin_percent=margin_percent(cost, b2b),
        retail_margin_percent=margin_percent(cost, retail),
    )


def validate_pricing_constraints(
    cost: Any,
    markup_percent: Any,
    min_price: Any = None,
    max_price: Any = None,
) -> PricingValidation:
    """
    Sanity-check a cost/markup/bounds combination.

    WHAT: Errors block saving; warnings are shown to the admin but accepted.

    Args:
        cost: Product cost
        markup_percent: Markup in percent
        min_price: Optional lower bound
        max_price: Optional upper bound

    Returns:
        PricingValidation with errors and warnings
    """
    result = PricingValidation()
    cost_d = to_decimal(cost)
    markup_d = to_decimal(markup_percent)
    min_d = to_decimal(min_price)
    max_d = to_decimal(max_price)

    if cost_d is not None and cost_d < ZERO:
        result.errors.append("Cost cannot be negative")
    if markup_d is not None and markup_d < ZERO:
        result.errors.append("Markup percentage cannot be negative")
    if markup_d is not None and markup_d > MARKUP_WARNING_THRESHOLD:
        result.warnings.append("Markup percentage is unusually high (>1000%)")
    if min_d is not None and max_d is not None and min_d > max_d:
        result.errors.append("Minimum price cannot be greater than maximum price")

    if result.errors or cost_d is None or markup_d is None:
        return result

    if min_d is not None and cost_d > ZERO and min_d <= cost_d:
        result.warnings.append("Minimum price is not above cost")

    computed = price_by_markup(cost_d, markup_d)
    if min_d is not None and computed < min_d:
        result.warnings.append(f"Calculated price {quantize_money(computed)} is below minimum {min_d}")
    if max_d is not None and computed > max_d:
        result.warnings.append(f"Calculated price {quantize_money(computed)} is above maximum {max_d}")

    return result
