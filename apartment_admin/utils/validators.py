import re

from ..constants import MONTH_NAMES

_PHONE_PATTERN = re.compile(r"^(\+90|0)?5\d{9}$")


def is_valid_tc_no(value: str) -> bool:
    """Check a Turkish national ID (TC Kimlik No): 11 digits, no leading zero, two check digits."""
    if len(value) != 11 or not value.isdigit() or value[0] == "0":
        return False
    digits = [int(char) for char in value]
    odd_sum = sum(digits[0:9:2])
    even_sum = sum(digits[1:8:2])
    if (odd_sum * 7 - even_sum) % 10 != digits[9]:
        return False
    return sum(digits[:10]) % 10 == digits[10]


def is_valid_turkish_phone(value: str) -> bool:
    return bool(_PHONE_PATTERN.match(re.sub(r"\s", "", value)))


def month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return ""
