from .auth import User, SessionToken
from .catalog import Hotel, RoomType
from .applications import HotelApplication
from .orders import Order, ORDER_STATUS_PENDING_PAYMENT

__all__ = [
    'User', 'SessionToken',
    'Hotel', 'RoomType',
    'HotelApplication',
    'Order', 'ORDER_STATUS_PENDING_PAYMENT',
]
