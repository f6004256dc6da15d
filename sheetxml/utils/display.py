"""Render cell values the way a spreadsheet application displays them.

xlsx files store a cell's underlying value and its number format code, never
the rendered text. The converter must emit what the user sees (leading zeros,
date layouts, grouping), so the text is rebuilt here from those two parts.

Only the first three format sections (positive; negative; zero) are used.
Month and day names are always English so the output does not depend on the
process locale.
"""

import numbers
import re
from datetime import date, datetime, time, timedelta
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Any, List, Optional, Tuple

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
DAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

EXCEL_EPOCH = datetime(1899, 12, 30)

_DATE_TOKEN_RE = re.compile(
    r"yyyy|yyy|yy|y|mmmmm|mmmm|mmm|mm|m|dddd|ddd|dd|d|hh|h|ss|s|am/pm|a/p|\.0+",
    re.IGNORECASE,
)
_DATE_CODE_RE = re.compile(r"[ydhsm]", re.IGNORECASE)
_ELAPSED_RE = re.compile(r"^(h+|m+|s+)$", re.IGNORECASE)
_DIGIT_PLACEHOLDERS = "0#?"
_DECIMAL_CONTEXT = Context(prec=100)

Token = Tuple[str, str]


def format_cell_value(value: Any, number_format: Optional[str] = "General") -> Optional[str]:
    """Return the display text for a cell value, or None for an empty cell."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, timedelta):
        return _format_elapsed(value, number_format or "General")
    if isinstance(value, (datetime, date, time)):
        return _format_temporal(value, number_format or "General")
    if isinstance(value, numbers.Real):
        return _format_number(value, number_format or "General")
    return str(value)


def format_general(number: Any) -> str:
    """Render a number using the General format."""
    if isinstance(number, numbers.Integral) and abs(int(number)) < 10 ** 11:
        return str(int(number))
    number = float(number)
    if number != number or number in (float("inf"), float("-inf")):
        return str(number)
    magnitude = abs(number)
    if magnitude >= 1e11 or (0 < magnitude < 1e-9):
        mantissa, exponent = f"{number:.5E}".split("E")
        if "." in mantissa:
            mantissa = mantissa.rstrip("0").rstrip(".")
        return f"{mantissa}E{exponent}"
    if number.is_integer():
        return str(int(number))
    return f"{number:.10g}"


def split_sections(number_format: str) -> List[str]:
    """Split a format code on semicolons that are not quoted or escaped."""
    sections = []
    current = []
    in_quote = False
    escaped = False
    for ch in number_format:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\" and not in_quote:
            escaped = True
        elif ch == '"':
            in_quote = not in_quote
        elif ch == ";" and not in_quote:
            sections.append("".join(current))
            current = []
            continue
        current.append(ch)
    sections.append("".join(current))
    return sections


def is_date_format(section: str) -> bool:
    """True when a format section contains date or time codes."""
    codes = "".join(text for kind, text in _tokenize(section) if kind in ("code", "elapsed"))
    codes = re.sub("general", "", codes, flags=re.IGNORECASE)
    return bool(_DATE_CODE_RE.search(codes))


def _tokenize(section: str) -> List[Token]:
    """Split a format section into literal text and format code characters."""
    tokens: List[Token] = []
    i = 0
    while i < len(section):
        ch = section[i]
        if ch == '"':
            end = section.find('"', i + 1)
            if end == -1:
                end = len(section)
            tokens.append(("lit", section[i + 1:end]))
            i = end + 1
        elif ch == "\\":
            tokens.append(("lit", section[i + 1:i + 2]))
            i += 2
        elif ch == "_":
            # Padding the width of the next character
            tokens.append(("lit", " "))
            i += 2
        elif ch == "*":
            i += 2
        elif ch == "[":
            end = section.find("]", i)
            if end == -1:
                end = len(section)
            inner = section[i + 1:end]
            if inner.startswith("$"):
                # Currency/locale block such as [$€-407]
                tokens.append(("lit", inner[1:].split("-", 1)[0]))
            elif _ELAPSED_RE.match(inner):
                # Elapsed time unit such as [h] or [mm]
                tokens.append(("elapsed", inner.lower()))
            i = end + 1
        else:
            tokens.append(("code", ch))
            i += 1
    return tokens


def _pick_section(number: float, number_format: str) -> Tuple[str, bool]:
    """Return the section for a number and whether a minus sign is needed."""
    sections = split_sections(number_format)
    if number < 0 and len(sections) > 1:
        return sections[1], False
    if number == 0 and len(sections) > 2:
        return sections[2], False
    return sections[0], number < 0


def _format_number(number: Any, number_format: str) -> str:
    section, needs_sign = _pick_section(number, number_format)
    sign = "-" if needs_sign else ""
    magnitude = abs(number)

    if section.strip().lower() in ("general", "") and len(split_sections(number_format)) == 1:
        return format_general(number)
    if is_date_format(section):
        if _has_elapsed(section):
            return _render_elapsed(float(number) * 86400, section)
        try:
            moment = EXCEL_EPOCH + timedelta(days=float(number))
        except OverflowError:
            return format_general(number)
        return _render_datetime(moment, section)

    tokens = _tokenize(section)
    codes = "".join(text for kind, text in tokens if kind == "code")
    if "general" in codes.lower() or "@" in codes:
        general = format_general(magnitude)
        text = "".join(text for _, text in tokens)
        text = re.sub(r"general|@", lambda _: general, text, count=1, flags=re.IGNORECASE)
        return sign + text

    placeholder_positions = [
        index for index, (kind, text) in enumerate(tokens)
        if kind == "code" and text in _DIGIT_PLACEHOLDERS
    ]
    if not placeholder_positions:
        # Literal-only section, e.g. a hidden-zero format or "N/A"
        return "".join(text for _, text in tokens)

    first, last = placeholder_positions[0], placeholder_positions[-1]
    prefix, body, suffix = tokens[:first], tokens[first:last + 1], tokens[last + 1:]

    scale = 100 ** codes.count("%")
    trailing_commas = 0
    for kind, text in suffix:
        if kind == "code" and text == ",":
            trailing_commas += 1
        else:
            break
    value = Decimal(repr(float(magnitude))) if isinstance(magnitude, float) else Decimal(int(magnitude))
    value = value * scale / (1000 ** trailing_commas)

    pattern = "".join(text for kind, text in body if kind == "code")
    if "/" in pattern:
        # Fractions are not rendered
        rendered = format_general(magnitude)
    elif "E" in pattern.upper():
        rendered = _render_scientific(value, pattern)
    elif "." not in pattern and (
        any(kind == "lit" for kind, _ in body) or re.search(r"[^0#?,]", pattern)
    ):
        rendered = _fill_template(value, body)
    else:
        rendered = _render_decimal(value, pattern)

    prefix_text = "".join(text for _, text in prefix)
    suffix_text = "".join(
        text for kind, text in suffix if not (kind == "code" and text == ",")
    )
    return f"{sign}{prefix_text}{rendered}{suffix_text}"


def _round(value: Decimal, decimals: int) -> Decimal:
    return value.quantize(
        Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP, context=_DECIMAL_CONTEXT
    )


def _group_thousands(digits: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return ",".join(group for group in groups if group)


def _render_decimal(value: Decimal, pattern: str) -> str:
    pattern = re.sub(r"[^0#?,.]", "", pattern)
    int_pattern, has_point, frac_pattern = pattern.partition(".")
    frac_digits = re.sub(r"[^0#?]", "", frac_pattern)
    int_digits = re.sub(r"[^0#?]", "", int_pattern)

    decimals = len(frac_digits)
    min_decimals = len(frac_digits.rstrip("#"))
    min_integers = int_digits.count("0")

    int_text, _, frac_text = f"{_round(value, decimals):f}".partition(".")
    while len(frac_text) > min_decimals and frac_text.endswith("0"):
        frac_text = frac_text[:-1]
    if int_text == "0" and min_integers == 0:
        int_text = ""
    int_text = int_text.zfill(min_integers)
    if "," in int_pattern and int_text:
        int_text = _group_thousands(int_text)

    if has_point:
        return f"{int_text}.{frac_text}"
    return int_text


def _render_scientific(value: Decimal, pattern: str) -> str:
    parts = re.split(r"[Ee]", pattern, maxsplit=1)
    mantissa_pattern, exponent_pattern = parts[0], parts[1] if len(parts) > 1 else ""
    _, _, frac_pattern = mantissa_pattern.partition(".")
    decimals = len(re.sub(r"[^0#?]", "", frac_pattern))
    exponent_width = max(exponent_pattern.count("0"), 1)
    always_sign = "+" in exponent_pattern

    mantissa, exponent = f"{float(value):.{decimals}E}".split("E")
    exponent_value = int(exponent)
    exponent_sign = "-" if exponent_value < 0 else ("+" if always_sign else "")
    return f"{mantissa}E{exponent_sign}{str(abs(exponent_value)).zfill(exponent_width)}"


def _fill_template(value: Decimal, body: List[Token]) -> str:
    """Fill an integer pattern with embedded literals (e.g. 000-00-0000)."""
    digits = f"{_round(value, 0):f}"
    if digits == "0":
        digits = ""
    pieces = []
    for kind, text in reversed(body):
        if kind == "code" and text in _DIGIT_PLACEHOLDERS:
            if digits:
                pieces.append(digits[-1])
                digits = digits[:-1]
            elif text == "0":
                pieces.append("0")
            elif text == "?":
                pieces.append(" ")
        elif kind == "code" and text == ",":
            continue
        else:
            pieces.append(text)
    if digits:
        pieces.append(digits)
    return "".join(reversed(pieces))


def _format_temporal(value: Any, number_format: str) -> str:
    section = split_sections(number_format)[0]
    if isinstance(value, time):
        value = datetime.combine(date(1899, 12, 31), value)
    elif not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)

    if not is_date_format(section):
        if value.time() == time(0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return _render_datetime(value, section)


def _has_elapsed(section: str) -> bool:
    return any(kind == "elapsed" for kind, _ in _tokenize(section))


def _format_elapsed(value: timedelta, number_format: str) -> str:
    section = split_sections(number_format)[0]
    if not is_date_format(section):
        section = "[h]:mm:ss"
    elif not _has_elapsed(section):
        return _render_datetime(EXCEL_EPOCH + value, section)
    return _render_elapsed(value.total_seconds(), section)


def _render_elapsed(total_seconds: float, section: str) -> str:
    """Render a duration. The bracketed unit does not wrap at 24h, 60m or 60s."""
    items = _date_items(section)
    fraction_width = max(
        (len(token) - 1 for kind, token in items if kind == "date" and token.startswith(".")),
        default=0,
    )
    sign = "-" if total_seconds < 0 else ""
    scaled = int(_round(Decimal(repr(abs(float(total_seconds)))) * 10 ** fraction_width, 0))
    whole_seconds, fraction = divmod(scaled, 10 ** fraction_width)

    pieces = []
    for kind, token in items:
        if kind == "lit":
            pieces.append(token)
        elif kind == "elapsed":
            unit = {"h": 3600, "m": 60, "s": 1}[token[0]]
            pieces.append(str(whole_seconds // unit).zfill(len(token)))
        elif token in ("h", "hh"):
            pieces.append(str(whole_seconds // 3600 % 24).zfill(len(token)))
        elif token in ("m", "mm"):
            pieces.append(str(whole_seconds // 60 % 60).zfill(len(token)))
        elif token in ("s", "ss"):
            pieces.append(str(whole_seconds % 60).zfill(len(token)))
        elif token.startswith("."):
            pieces.append("." + str(fraction).zfill(fraction_width)[:len(token) - 1])
    return sign + "".join(pieces)


def _date_items(section: str) -> List[Token]:
    items: List[Token] = []
    run = []

    def flush():
        text = "".join(run)
        position = 0
        for match in _DATE_TOKEN_RE.finditer(text):
            if match.start() > position:
                items.append(("lit", text[position:match.start()]))
            items.append(("date", match.group(0).lower()))
            position = match.end()
        if position < len(text):
            items.append(("lit", text[position:]))
        run.clear()

    for kind, text in _tokenize(section):
        if kind == "code":
            run.append(text)
        else:
            flush()
            items.append((kind, text))
    flush()
    return items


def _is_minute(items: List[Token], index: int) -> bool:
    for kind, token in reversed(items[:index]):
        if kind == "date" and not token.startswith("."):
            if token in ("h", "hh"):
                return True
            break
    for kind, token in items[index + 1:]:
        if kind == "date" and not token.startswith("."):
            return token in ("s", "ss")
    return False


def _render_datetime(value: datetime, section: str) -> str:
    items = _date_items(section)
    twelve_hour = any(kind == "date" and token in ("am/pm", "a/p") for kind, token in items)
    hour = value.hour
    if twelve_hour:
        hour = hour % 12 or 12

    pieces = []
    for index, (kind, token) in enumerate(items):
        if kind == "lit":
            pieces.append(token)
        elif token in ("m", "mm") and _is_minute(items, index):
            pieces.append(f"{value.minute:02d}" if token == "mm" else str(value.minute))
        elif token in ("yyyy", "yyy"):
            pieces.append(f"{value.year:04d}")
        elif token in ("yy", "y"):
            pieces.append(f"{value.year % 100:02d}")
        elif token == "mmmmm":
            pieces.append(MONTH_NAMES[value.month - 1][0])
        elif token == "mmmm":
            pieces.append(MONTH_NAMES[value.month - 1])
        elif token == "mmm":
            pieces.append(MONTH_NAMES[value.month - 1][:3])
        elif token == "mm":
            pieces.append(f"{value.month:02d}")
        elif token == "m":
            pieces.append(str(value.month))
        elif token == "dddd":
            pieces.append(DAY_NAMES[value.weekday()])
        elif token == "ddd":
            pieces.append(DAY_NAMES[value.weekday()][:3])
        elif token == "dd":
            pieces.append(f"{value.day:02d}")
        elif token == "d":
            pieces.append(str(value.day))
        elif token == "hh":
            pieces.append(f"{hour:02d}")
        elif token == "h":
            pieces.append(str(hour))
        elif token == "ss":
            pieces.append(f"{value.second:02d}")
        elif token == "s":
            pieces.append(str(value.second))
        elif token == "am/pm":
            pieces.append("AM" if value.hour < 12 else "PM")
        elif token == "a/p":
            pieces.append("A" if value.hour < 12 else "P")
        elif token.startswith("."):
            width = len(token) - 1
            fraction = f"{value.microsecond / 1_000_000:.{width}f}"
            pieces.append(fraction[1:])
    return "".join(pieces)
