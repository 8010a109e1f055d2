"""
Buyer-facing tools the portal agent may call.

Arguments are untrusted model output: each tool's argument model coerces, clamps and rejects values
before any store access happens.  The caller's identity always comes from the ToolContext.
"""

import logging
import math
from typing import (
    Any,
    Dict,
    Literal,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
    field_validator,
)

from puppyportal.tools import (
    ToolContext,
    register_tool,
)

logger = logging.getLogger(__name__)

PuppyStatus = Literal["READY", "RESERVED", "SOLD"]

DEFAULT_PUPPY_LIMIT = 12
MIN_PUPPY_LIMIT = 1
MAX_PUPPY_LIMIT = 50
APPLICATION_LIMIT = 3
MAX_MESSAGE_LENGTH = 2000


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------
class ListPuppiesArgs(BaseModel):
    """Arguments of ``list_available_puppies``."""

    limit: int = Field(
        DEFAULT_PUPPY_LIMIT, ge=MIN_PUPPY_LIMIT, le=MAX_PUPPY_LIMIT, description="How many puppies"
    )
    status: PuppyStatus = Field("READY", description="Listing status to filter on")

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value: Any) -> int:
        if value is None:
            return DEFAULT_PUPPY_LIMIT
        if isinstance(value, bool):
            raise ValueError("limit must be a number")
        if isinstance(value, int):
            return max(MIN_PUPPY_LIMIT, min(MAX_PUPPY_LIMIT, value))
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("limit must be a number") from exc
        if math.isnan(number):
            raise ValueError("limit must be a number")
        if math.isinf(number):
            return MAX_PUPPY_LIMIT if number > 0 else MIN_PUPPY_LIMIT
        return max(MIN_PUPPY_LIMIT, min(MAX_PUPPY_LIMIT, int(number)))

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if value is None:
            return "READY"
        if isinstance(value, str):
            return value.strip().upper()
        return value


class NoArgs(BaseModel):
    """Tools that take no arguments ignore whatever the model sends."""


class SendMessageArgs(BaseModel):
    """Arguments of ``send_message_to_breeder``."""

    text: str = Field(..., description="The message to send to the breeder")

    @field_validator("text", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> str:
        text = "" if value is None else str(value)
        text = text.strip()
        if not text:
            raise ValueError("Empty message")
        return text[:MAX_MESSAGE_LENGTH]


class PaymentLinkArgs(BaseModel):
    """Arguments of ``create_payment_link``."""

    note: Optional[str] = Field(None, description="Context for the payment, e.g., deposit")


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------
@register_tool(
    "list_available_puppies",
    "List currently available puppies. Default to READY status and limit 12.",
    ListPuppiesArgs,
)
def list_available_puppies(args: ListPuppiesArgs, ctx: ToolContext) -> Dict[str, Any]:
    """Read-only listing with DOB, gender, price, coat, registry and status."""
    rows = ctx.store.list_puppies(status=args.status, limit=args.limit)
    logger.info("Listed %d %s puppies (limit=%d)", len(rows), args.status, args.limit)
    return {"results": rows}


@register_tool(
    "get_my_application_status",
    "Get application status for the signed-in user.",
    NoArgs,
)
def get_my_application_status(args: NoArgs, ctx: ToolContext) -> Dict[str, Any]:
    rows = ctx.store.list_applications(buyer_id=ctx.caller.id, limit=APPLICATION_LIMIT)
    return {"results": rows}


@register_tool(
    "send_message_to_breeder",
    "Write a message to the breeder from this user.",
    SendMessageArgs,
)
def send_message_to_breeder(args: SendMessageArgs, ctx: ToolContext) -> Dict[str, Any]:
    ctx.store.insert_message(
        author_id=ctx.caller.id, author_email=ctx.caller.email, body=args.text
    )
    logger.info("Caller %s sent a message to the breeder (%d chars)", ctx.caller.id, len(args.text))
    return {"sent": True}


@register_tool(
    "create_payment_link",
    "Generate a link to the portal payments page (no invoice creation).",
    PaymentLinkArgs,
)
def create_payment_link(args: PaymentLinkArgs, ctx: ToolContext) -> Dict[str, Any]:
    """Static link only; no charge is made and nothing is stored."""
    return {"url": f"{ctx.settings.SITE_URL.rstrip('/')}/payments"}
