from typing import Optional


class RegistryError(Exception):
    """Base class for every categorical registry failure."""

    code = "RegistryError"
    status_code = 400
    default_detail = "Registry operation failed"

    def __init__(self, detail: Optional[str] = None, *args):
        self.detail = detail or self.default_detail
        super().__init__(self.detail, *args)


class InvalidUri(RegistryError):
    code = "InvalidUri"
    default_detail = "URI must be between 1 and 256 bytes"


class NotOwner(RegistryError):
    code = "NotOwner"
    status_code = 403
    default_detail = "Caller is not the owner of this badge"


NotBadgeOwner = NotOwner


class BadgeNotFound(RegistryError):
    code = "BadgeNotFound"
    status_code = 404

    def __init__(self, badge_id: int, *args):
        self.badge_id = badge_id
        super().__init__(f"Badge {badge_id} has no owner", *args)


class AlreadyBurned(RegistryError):
    code = "AlreadyBurned"
    status_code = 409

    def __init__(self, badge_id: int, *args):
        self.badge_id = badge_id
        super().__init__(f"Badge {badge_id} is already burned", *args)


class BatchTooLarge(RegistryError):
    code = "BatchTooLarge"

    def __init__(self, size: int, limit: int, *args):
        self.size = size
        self.limit = limit
        super().__init__(f"Batch of {size} exceeds the limit of {limit}", *args)


class InvalidExpiry(RegistryError):
    code = "InvalidExpiry"

    def __init__(self, expiry_block: int, block_height: int, detail: Optional[str] = None, *args):
        self.expiry_block = expiry_block
        self.block_height = block_height
        super().__init__(
            detail or f"Expiry block {expiry_block} must be after the current block {block_height}", *args
        )


class NotTimeLimited(RegistryError):
    code = "NotTimeLimited"
    status_code = 409

    def __init__(self, badge_id: int, *args):
        self.badge_id = badge_id
        super().__init__(f"Badge {badge_id} has no expiry", *args)


class NotYetExpired(RegistryError):
    code = "NotYetExpired"
    status_code = 409

    def __init__(self, badge_id: int, expiry_block: int, *args):
        self.badge_id = badge_id
        self.expiry_block = expiry_block
        super().__init__(f"Badge {badge_id} does not expire until block {expiry_block}", *args)


class InvalidId(RegistryError):
    code = "InvalidId"
    default_detail = "Badge ids start at 1"


class IdOutOfRange(RegistryError):
    code = "IdOutOfRange"
    status_code = 404

    def __init__(self, badge_id: int, last_id: int, *args):
        self.badge_id = badge_id
        self.last_id = last_id
        super().__init__(f"Badge {badge_id} has not been issued (last id is {last_id})", *args)


class MintFailed(RegistryError):
    code = "MintFailed"
    status_code = 500
    default_detail = "Identity store rejected the mint"


class UriMissing(RegistryError):
    code = "UriMissing"
    status_code = 500

    def __init__(self, badge_id: int, *args):
        self.badge_id = badge_id
        super().__init__(f"Badge {badge_id} is issued but has no URI", *args)


class OwnerMissing(RegistryError):
    code = "OwnerMissing"
    status_code = 500

    def __init__(self, badge_id: int, *args):
        self.badge_id = badge_id
        super().__init__(f"Badge {badge_id} is issued but has no owner", *args)


class OwnershipError(Exception):
    """Raised by the identity store when its single-owner contract is violated."""

    def __init__(self, badge_id: int, reason: str, *args):
        self.badge_id = badge_id
        self.reason = reason
        super().__init__(f"Ownership of badge {badge_id}: {reason}", *args)
