"""Notification types and channels shared by templates, adapters and the aggregate."""

from enum import Enum


class NotificationType(Enum):
    ORDER_CONFIRMATION = "OrderConfirmation"
    PAYMENT_CONFIRMATION = "PaymentConfirmation"
    SHIPPING_NOTICE = "ShippingNotice"
    BANK_TRANSFER_INSTRUCTIONS = "BankTransferInstructions"
    ADMIN_NEW_ORDER = "AdminNewOrder"


class NotificationChannel(Enum):
    EMAIL = "Email"


class RecipientType(Enum):
    CUSTOMER = "Customer"
    INTERNAL = "Internal"
