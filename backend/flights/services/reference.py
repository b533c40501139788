"""Vendor reference data: aircraft types, cabin classes and fare attribute codes.

These are fixed enumerations from the upstream API. Lookups never fail: an
unmapped code is passed through as-is.
"""

AIRCRAFT_TYPES = {
    "310": "Airbus A310",
    "318": "Airbus A318",
    "319": "Airbus A319",
    "320": "Airbus A320",
    "321": "Airbus A321",
    "32N": "Airbus A320neo",
    "32A": "Airbus A320neo",
    "32Q": "Airbus A321neo",
    "332": "Airbus A330-200",
    "333": "Airbus A330-300",
    "338": "Airbus A330-800neo",
    "339": "Airbus A330-900neo",
    "342": "Airbus A340-200",
    "343": "Airbus A340-300",
    "345": "Airbus A340-500",
    "346": "Airbus A340-600",
    "359": "Airbus A350-900",
    "35K": "Airbus A350-1000",
    "380": "Airbus A380",
    "703": "Boeing 707",
    "717": "Boeing 717",
    "721": "Boeing 727-100",
    "722": "Boeing 727-200",
    "731": "Boeing 737-100",
    "732": "Boeing 737-200",
    "733": "Boeing 737-300",
    "734": "Boeing 737-400",
    "735": "Boeing 737-500",
    "736": "Boeing 737-600",
    "737": "Boeing 737-700",
    "738": "Boeing 737-800",
    "739": "Boeing 737-900",
    "73C": "Boeing 737-300",
    "73G": "Boeing 737-700",
    "73H": "Boeing 737-800",
    "73J": "Boeing 737-900",
    "73W": "Boeing 737-700",
    "73X": "Boeing 737-MAX",
    "7M7": "Boeing 737 MAX 7",
    "7M8": "Boeing 737 MAX 8",
    "7M9": "Boeing 737 MAX 9",
    "7MJ": "Boeing 737 MAX 10",
    "741": "Boeing 747-100",
    "742": "Boeing 747-200",
    "743": "Boeing 747-300",
    "744": "Boeing 747-400",
    "747": "Boeing 747",
    "74E": "Boeing 747-400",
    "74H": "Boeing 747-8",
    "757": "Boeing 757",
    "752": "Boeing 757-200",
    "753": "Boeing 757-300",
    "75W": "Boeing 757-200",
    "762": "Boeing 767-200",
    "763": "Boeing 767-300",
    "764": "Boeing 767-400",
    "767": "Boeing 767",
    "76W": "Boeing 767-300",
    "772": "Boeing 777-200",
    "773": "Boeing 777-300",
    "777": "Boeing 777",
    "77L": "Boeing 777-200LR",
    "77W": "Boeing 777-300ER",
    "788": "Boeing 787-8",
    "789": "Boeing 787-9",
    "78J": "Boeing 787-10",
    "787": "Boeing 787 Dreamliner",
    "190": "Embraer 190",
    "195": "Embraer 195",
    "E70": "Embraer 170",
    "E75": "Embraer 175",
    "E90": "Embraer 190",
    "E95": "Embraer 195",
    "ER3": "Embraer ERJ 135",
    "ER4": "Embraer ERJ 145",
    "ERD": "Embraer ERJ 140",
    "ERJ": "Embraer ERJ 145",
    "CR2": "Bombardier CRJ-200",
    "CR7": "Bombardier CRJ-700",
    "CR9": "Bombardier CRJ-900",
    "CRJ": "Bombardier CRJ",
    "CRK": "Bombardier CRJ-1000",
    "DH1": "De Havilland DHC-1",
    "DH2": "De Havilland DHC-2",
    "DH3": "De Havilland DHC-3",
    "DH4": "De Havilland DHC-4",
    "DH8": "De Havilland Dash 8",
    "DHC": "De Havilland DHC-6",
    "AT4": "ATR 42",
    "AT5": "ATR 42-500",
    "AT7": "ATR 72",
    "AT9": "ATR 72-600",
    "ATR": "ATR",
    "SU9": "Sukhoi Superjet 100",
    "SSJ": "Sukhoi Superjet 100",
    "223": "Airbus A220-300",
    "290": "Embraer E190-E2",
    "295": "Embraer E195-E2",
}

# Single-letter booking/cabin codes used in fare data.
CABIN_CLASS_NAMES = {
    "F": "First Class",
    "P": "First Class",
    "A": "First Class",
    "C": "Business",
    "J": "Business",
    "D": "Business",
    "W": "Premium Economy",
    "Y": "Economy",
    "M": "Economy",
    "S": "Economy",
    "H": "Economy",
}

# Numeric cabin types as returned by the price-check endpoint.
CABIN_TYPE_NAMES = {
    "2": "Business",
    "3": "Premium Economy",
    "4": "Economy",
}

# Search form cabin option -> upstream one-letter cabin code.
SEARCH_CABIN_CODES = {
    "1": "M",
    "2": "W",
    "3": "C",
    "4": "F",
    "ECONOMY": "M",
    "PREMIUM_ECONOMY": "W",
    "BUSINESS": "C",
    "FIRST": "F",
}

# 1=Refundable, 2=Non-Refundable, 3=Refundable with penalty, 4=Fully refundable
REFUNDABLE_CODES = {
    1: True,
    2: False,
    3: True,
    4: True,
}

REFUNDABLE_STATUSES = {
    1: ("refundable", "Ticket can be refunded (fees may apply)"),
    2: ("non-refundable", "Ticket can't be refunded"),
    3: ("refundable-with-penalty", "Refundable with penalty fees"),
    4: ("fully-refundable", "Fully refundable"),
}

# IATA meal service codes.
MEAL_CODES = {
    "B": True,  # breakfast
    "K": True,  # continental breakfast
    "L": True,  # lunch
    "D": True,  # dinner
    "M": True,  # meal
    "H": True,  # hot meal
    "O": True,  # cold meal
    "S": True,  # snack
    "R": True,  # refreshments
    "C": True,  # alcoholic beverages complimentary
    "F": False,  # food for purchase
    "P": False,  # alcoholic beverages for purchase
    "G": False,  # food and beverages for purchase
    "V": False,  # refreshments for purchase
    "N": False,  # no meal service
}

NO_BAGGAGE_VALUES = {"", "none", "0", "0p", "0pc", "0k", "0kg", "nil"}


def aircraft_name(code):
    if code is None or str(code).strip() == "":
        return ""
    key = str(code).strip().upper()
    return AIRCRAFT_TYPES.get(key, key)


def cabin_class_name(code, default="Economy"):
    if code is None or str(code).strip() == "":
        return default
    key = str(code).strip().upper()
    return CABIN_TYPE_NAMES.get(key) or CABIN_CLASS_NAMES.get(key) or key


def search_cabin_code(value):
    if value is None:
        return "M"
    return SEARCH_CABIN_CODES.get(str(value).strip().upper(), "M")


def _refund_code(value):
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def refundable_flag(value):
    """True/False for known codes, None when absent or unrecognised."""
    return REFUNDABLE_CODES.get(_refund_code(value))


def refundable_status(value):
    code = _refund_code(value)
    status, text = REFUNDABLE_STATUSES.get(code, REFUNDABLE_STATUSES[2])
    return {"refundable": REFUNDABLE_CODES.get(code, False), "refundableStatus": status, "refundableText": text}


def meals_flag(value):
    """Any complimentary meal code in the value counts; None when nothing is recognised."""
    if value is None:
        return None
    codes = [c for c in str(value).strip().upper() if c.isalpha()]
    known = [MEAL_CODES[c] for c in codes if c in MEAL_CODES]
    if not known:
        return None
    return any(known)


def has_checked_baggage(allowance, quantity=None):
    if allowance is not None:
        text = str(allowance).strip().lower()
        if text not in NO_BAGGAGE_VALUES and not text.endswith("***"):
            return True
    if quantity is not None and str(quantity).strip() not in ("", "0"):
        return True
    return False
