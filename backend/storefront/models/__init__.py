"""Convenience imports for Alembic metadata discovery."""

from storefront.models.user import User
from storefront.models.user_address import UserAddress
from storefront.models.password_reset_token import PasswordResetToken
from storefront.models.category import Category
from storefront.models.product import Media, Product
from storefront.models.product_qna import ProductQnA

__all__ = [
    "Category",
    "Media",
    "PasswordResetToken",
    "Product",
    "ProductQnA",
    "User",
    "UserAddress",
]
