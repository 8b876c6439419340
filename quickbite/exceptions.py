"""
Domain failures raised by the menu item service layer.
They are translated into HTTP error envelopes in quickbite.errors.
"""


class MenuItemError(Exception):
    pass


class MenuItemNotFoundError(MenuItemError):
    def __init__(self, menu_item_id: int):
        self.menu_item_id = menu_item_id
        super().__init__(f"Menu item with ID {menu_item_id} not found")


class DuplicateMenuItemNameError(MenuItemError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Menu item with name '{name}' already exists")


class InvalidArgumentError(MenuItemError, ValueError):
    """A request that is well-formed but cannot be served, e.g. min price above max price."""
