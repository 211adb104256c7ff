from typing import List

class OwnershipLedger:
    """Ordered owners per product; the first is always the registering farmer."""

    def __init__(self, ctx):
        self.ctx = ctx

    def start(self, product_id: int, farmer: str) -> None:
        self.ctx.store.append_owner(product_id, farmer)

    def record_transfer(self, product_id: int, new_owner: str) -> None:
        self.ctx.store.append_owner(product_id, new_owner)

    def owners(self, product_id: int) -> List[str]:
        self.ctx.load_product(product_id)
        return self.ctx.store.get_owners(product_id)
