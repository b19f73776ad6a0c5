"""Amount formatting for coaching copy"""


def format_rupiah(value: int) -> str:
    """Render minor units with dot thousands separators, e.g. 20000 -> Rp20.000"""
    sign = "-" if value < 0 else ""
    return f"{sign}Rp{abs(value):,}".replace(",", ".")
