"""Inventory item models and the asset namespaces the trader works with."""

from pydantic import BaseModel, Field

# Steam Community inventory (Gems, backgrounds, emoticons)
GEM_APP_ID = 753
GEM_CONTEXT_ID = 6

# Team Fortress 2 inventory (keys)
KEY_APP_ID = 440
KEY_CONTEXT_ID = 2

GEMS_NAME = "Gems"
WORTH_MARKER = "This item is worth:"


class ItemRef(BaseModel):
    """A single inventory item (or stack, for fungible items like Gems)."""

    app_id: int
    context_id: int
    asset_id: str
    name: str = ""
    market_hash_name: str = ""
    type: str = ""
    amount: int = Field(default=1, ge=0)
    descriptions: list[str] = Field(default_factory=list)
    tradable: bool = True

    @property
    def is_gems(self) -> bool:
        return (
            self.app_id == GEM_APP_ID
            and self.context_id == GEM_CONTEXT_ID
            and self.name == GEMS_NAME
        )

    @property
    def is_collectible(self) -> bool:
        """Profile backgrounds and emoticons (the gemmable community items)."""
        tag = self.type.lower()
        return "profile background" in tag or "emoticon" in tag

    def with_amount(self, amount: int) -> "ItemRef":
        """Return a copy of this stack carrying only `amount` units."""
        return self.model_copy(update={"amount": amount})


class EscrowStatus(BaseModel):
    """Trade hold days for both sides of a prospective trade."""

    self_days: int = Field(default=0, ge=0)
    partner_days: int = Field(default=0, ge=0)

    @property
    def is_clear(self) -> bool:
        return self.self_days == 0 and self.partner_days == 0
