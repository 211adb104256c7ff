import logging

from errors import Unauthorized
from schemas import FoodProduct

logger = logging.getLogger(__name__)

class AccessControl:
    """Guard clauses evaluated against the calling identity."""

    def __init__(self, ctx, directory):
        self.ctx = ctx
        self.directory = directory

    def require_admin(self, caller: str) -> None:
        if caller != self.ctx.admin_id:
            logger.debug("rejected %r: not admin", caller)
            raise Unauthorized("caller is not the registry admin")

    def require_verified_participant(self, caller: str) -> None:
        if not self.directory.is_verified(caller):
            logger.debug("rejected %r: not a verified participant", caller)
            raise Unauthorized("caller is not a verified participant")

    def require_current_owner(self, caller: str, product_id: int) -> FoodProduct:
        product = self.ctx.load_product(product_id)
        if caller != product.current_owner:
            logger.debug("rejected %r: does not own product %s", caller, product_id)
            raise Unauthorized(f"caller is not the current owner of product {product_id}")
        return product
