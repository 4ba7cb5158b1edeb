from enum import Enum


class Channel(str, Enum):
    POPUP_USER = "popup_user"
    LOG_ADMIN = "log_admin"
