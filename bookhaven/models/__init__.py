from bookhaven.models.user import User
from bookhaven.models.order import Order
from bookhaven.models.rented_book import RentedBook
from bookhaven.models.order_event import OrderEvent
