from enum import Enum


class WatchCondition(str, Enum):
    NEW = "NEW"
    UNWORN = "UNWORN"
    EXCELLENT = "EXCELLENT"
    VERY_GOOD = "VERY_GOOD"
    GOOD = "GOOD"
    FAIR = "FAIR"
