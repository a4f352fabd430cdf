"""
Algerian administrative divisions used as shipping destinations.

Official wilaya codes (1-58). This is reference geography, not price data:
rates always come from the carrier fee table.
"""

from __future__ import annotations

import unicodedata

WILAYAS: dict[int, str] = {
    1: "Adrar", 2: "Chlef", 3: "Laghouat", 4: "Oum El Bouaghi", 5: "Batna",
    6: "Béjaïa", 7: "Biskra", 8: "Béchar", 9: "Blida", 10: "Bouira",
    11: "Tamanrasset", 12: "Tébessa", 13: "Tlemcen", 14: "Tiaret", 15: "Tizi Ouzou",
    16: "Alger", 17: "Djelfa", 18: "Jijel", 19: "Sétif", 20: "Saïda",
    21: "Skikda", 22: "Sidi Bel Abbès", 23: "Annaba", 24: "Guelma", 25: "Constantine",
    26: "Médéa", 27: "Mostaganem", 28: "M'Sila", 29: "Mascara", 30: "Ouargla",
    31: "Oran", 32: "El Bayadh", 33: "Illizi", 34: "Bordj Bou Arréridj", 35: "Boumerdès",
    36: "El Tarf", 37: "Tindouf", 38: "Tissemsilt", 39: "El Oued", 40: "Khenchela",
    41: "Souk Ahras", 42: "Tipaza", 43: "Mila", 44: "Aïn Defla", 45: "Naâma",
    46: "Aïn Témouchent", 47: "Ghardaïa", 48: "Relizane", 49: "El M'Ghair", 50: "El Meniaa",
    51: "Ouled Djellal", 52: "Bordj Baji Mokhtar", 53: "Béni Abbès", 54: "Timimoun",
    55: "Touggourt", 56: "Djanet", 57: "In Salah", 58: "In Guezzam",
}


def _fold(name: str) -> str:
    """Lowercase and strip accents so 'bejaia' matches 'Béjaïa'"""
    decomposed = unicodedata.normalize('NFKD', name.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


_BY_FOLDED_NAME: dict[str, int] = {_fold(name): wilaya_id for wilaya_id, name in WILAYAS.items()}


def resolve_wilaya_id(value: int | str | None) -> int | None:
    """Accept a wilaya code (16, "16") or a name ("Alger", "bejaia"); None when unknown"""
    if value is None:
        return None
    if isinstance(value, int):
        return value if value in WILAYAS else None

    text = str(value).strip()
    if text.isdigit():
        code = int(text)
        return code if code in WILAYAS else None
    return _BY_FOLDED_NAME.get(_fold(text))


def wilaya_name(wilaya_id: int) -> str:
    return WILAYAS.get(wilaya_id, str(wilaya_id))


def wilaya_choices() -> list[dict[str, object]]:
    return [{'id': wilaya_id, 'name': name, 'code': f"{wilaya_id:02d}"} for wilaya_id, name in WILAYAS.items()]
