from models.users import User
from models.orders import Order
from models.password_setup_tokens import PasswordSetupToken
from models.refresh_tokens import RefreshToken
from models.addresses import Address

__all__ = ["User", "Order", "PasswordSetupToken", "RefreshToken", "Address"]
