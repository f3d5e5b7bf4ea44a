from typing import Optional

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
}


def _indian_grouping(n: int) -> str:
    # 12,34,567: last three digits, then pairs
    s = str(abs(n))
    if len(s) <= 3:
        grouped = s
    else:
        head, tail = s[:-3], s[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        grouped = ",".join(pairs) + "," + tail
    return ("-" if n < 0 else "") + grouped


def currency_fmt(v: Optional[float], currency: str = "INR") -> str:
    try:
        if v is None:
            return 'N/A'
        symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")
        if currency == "INR":
            return f"{symbol}{_indian_grouping(int(round(v)))}"
        return f"{symbol}{v:,.0f}"
    except (TypeError, ValueError):
        return str(v)


def number_fmt(v: Optional[float]) -> str:
    if v is None:
        return 'N/A'
    if float(v).is_integer():
        return f"{int(v):,}"
    return f"{v:,.2f}"


def percent_fmt(v: Optional[float]) -> str:
    if v is None:
        return 'N/A'
    return f"{v:.1f}%"


def format_value(v: Optional[float], hint: str = "number", currency: str = "INR") -> str:
    if hint == "currency":
        return currency_fmt(v, currency)
    if hint == "percent":
        return percent_fmt(v)
    return number_fmt(v)
