import enum

# Stored as VARCHAR columns; values are validated at the API boundary.


class UserRole(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    FREELANCE_MECHANIC = "FREELANCE_MECHANIC"
    GARAGE_OWNER = "GARAGE_OWNER"
    SPAREPARTS_SHOP = "SPAREPARTS_SHOP"
    ADMIN = "ADMIN"


class BusinessType(str, enum.Enum):
    GARAGE = "GARAGE"
    FREELANCE_MECHANIC = "FREELANCE_MECHANIC"
    SPAREPARTS_SHOP = "SPAREPARTS_SHOP"


class ServiceStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


PROVIDER_ROLES = (UserRole.GARAGE_OWNER, UserRole.FREELANCE_MECHANIC, UserRole.SPAREPARTS_SHOP)

# business profile type for each provider role
ROLE_TO_BUSINESS_TYPE = {
    UserRole.GARAGE_OWNER: BusinessType.GARAGE,
    UserRole.FREELANCE_MECHANIC: BusinessType.FREELANCE_MECHANIC,
    UserRole.SPAREPARTS_SHOP: BusinessType.SPAREPARTS_SHOP,
}
