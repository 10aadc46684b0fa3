from ...constants import (
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
    DEFAULT_SETTINGS,
    TABLE_SETTINGS,
    TABLE_USERS,
)
from ...utils.auth import hash_password


def seed(store):
    # settings is a singleton: first row wins, so only add one when empty
    if store.count(TABLE_SETTINGS) == 0:
        store.insert(TABLE_SETTINGS, dict(DEFAULT_SETTINGS))

    # if no users exist, create the default admin
    if store.count(TABLE_USERS) == 0:
        store.insert(TABLE_USERS, {
            "username": DEFAULT_ADMIN_USERNAME,
            "passwordHash": hash_password(DEFAULT_ADMIN_PASSWORD),
            "fullName": "Administrator",
            "isActive": True,
        })
