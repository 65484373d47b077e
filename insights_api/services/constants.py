from typing import Any, Optional

SIGN_NAMES = ["Aries","Taurus","Gemini","Cancer","Leo","Virgo","Libra","Scorpio","Sagittarius","Capricorn","Aquarius","Pisces"]
SIGN_LORDS = ["Mars","Venus","Mercury","Moon","Sun","Mercury","Venus","Mars","Jupiter","Saturn","Saturn","Jupiter"]
UNKNOWN = "Unknown"

_SIGN_BY_LOWER = {name.lower(): name for name in SIGN_NAMES}


def sign_index_from_lon(lon: float) -> int:
    return int(lon // 30) % 12

def sign_name_from_lon(lon: float) -> str:
    return SIGN_NAMES[sign_index_from_lon(lon)]

def sign_lord(sign_name: str) -> Optional[str]:
    try:
        return SIGN_LORDS[SIGN_NAMES.index(sign_name)]
    except ValueError:
        return None

def sign_name_from_code(code: Any) -> str:
    # 1..12 (int, integral float or numeric string) or a sign name; anything else is UNKNOWN
    if isinstance(code, bool) or code is None:
        return UNKNOWN
    if isinstance(code, str):
        text = code.strip()
        if text.lower() in _SIGN_BY_LOWER:
            return _SIGN_BY_LOWER[text.lower()]
        try:
            code = float(text)
        except ValueError:
            return UNKNOWN
    if isinstance(code, float):
        if not code.is_integer():
            return UNKNOWN
        code = int(code)
    if isinstance(code, int) and 1 <= code <= 12:
        return SIGN_NAMES[code - 1]
    return UNKNOWN
