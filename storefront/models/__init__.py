# Register every table on Base.metadata
from storefront.models.users import User, Role
from storefront.models.category import Category
from storefront.models.product import Product, ImageRef, ImageSource
from storefront.models.log import AuditLog
