"""Application-wide constants for the salon booking engine."""

from __future__ import annotations

# Booking rules
MIN_NOTICE_HOURS = 24  # earliest bookable start is now + this
CHEMICAL_GAP_MIN = 30  # processing gap after a chemical service, minutes
SLOT_GRANULARITY_MIN = 15  # candidate start step, measured from opening time
MAX_HOLD_HOURS = 12  # longest ad-hoc resource hold
MAX_REPEAT_OCCURRENCES = 52

# Side effects (booking logs)
SIDE_EFFECT_TIMEOUT_SECONDS = 8.0
SIDE_EFFECT_MAX_WORKERS = 2

# Advisory lock
BOOKING_LOCK_TTL_SECONDS = 90

# Day of week mapping (index matches date.weekday())
DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# Keywords that mark a legacy/untagged service as chemical
CHEMICAL_KEYWORDS = (
    "tint",
    "colour",
    "color",
    "bleach",
    "toner",
    "gloss",
    "highlights",
    "balayage",
    "foils",
    "perm",
    "relaxer",
    "keratin",
    "chemical",
    "straightening",
)
CHEMICAL_CATEGORY_MARKER = "treat"

# Email domains that are almost always typos of gmail.com
EMAIL_TYPO_DOMAINS = ("gmail.c", "gmail.co", "gmail.con", "gmail.coom", "gmail.cc")

# User-facing messages
ERROR_SLOT_TAKEN = "Sorry, one of those times was just taken. Please pick another slot."
ERROR_NO_SERVICES = "Select at least one service"
ERROR_CLIENT_AMBIGUOUS = (
    "A client with this name already exists. Please add a mobile number so we can find the right record."
)
ERROR_GROUP_LOCKED = "This booking is locked and cannot be changed"

BRAND_NAME = "Salon Booking"
API_TITLE = f"{BRAND_NAME} API"
API_VERSION = "1.0.0"
