import enum


class MovementTypeEnum(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class RoleEnum(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"
