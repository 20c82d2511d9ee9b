from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from functools import wraps
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request, session
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .balances import (
    compute_balances,
    summarize_member_position,
    summarize_member_position_by_group,
)
from .config import config
from .context import RequestContext
from .db import db
from .errors import NotAuthorized, NotFound, SplitStuffError, ValidationError
from .models import Expense, Member, Settlement, Transfer
from .money import quantize_cents, to_decimal, to_display
from .repository import GroupRepository
from .splits import equal_shares, percentage_shares
from .transfers import plan_transfers, total_transferred, transfers_for_member
from .upi import build_upi_link, upi_link_for_transfer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def create_app(repository: Optional[GroupRepository] = None, settings=config) -> Flask:
    _configure_logging(settings.LOG_LEVEL)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.SECRET_KEY
    app.config["SESSION_COOKIE_NAME"] = settings.SESSION_COOKIE_NAME
    app.config["SESSION_COOKIE_HTTPONLY"] = settings.SESSION_COOKIE_HTTPONLY
    app.config["SESSION_COOKIE_SAMESITE"] = settings.SESSION_COOKIE_SAMESITE
    app.config["CURRENCY_CODE"] = settings.CURRENCY_CODE
    app.extensions["splitstuff.repository"] = repository or GroupRepository(db)

    CORS(
        app,
        supports_credentials=True,
        resources={r"/api/*": {"origins": settings.CORS_ORIGINS}},
    )

    register_error_handlers(app)
    register_routes(app)
    return app


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("splitstuff").setLevel(level)


def get_repository() -> GroupRepository:
    return current_app.extensions["splitstuff.repository"]


def require_member(func):
    """Pass the signed-in member to the view as ``ctx``."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "authentication_required"}), 401
        ctx = RequestContext(
            member_id=str(session["user_id"]),
            member_name=session.get("user_name"),
        )
        return func(ctx, *args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(SplitStuffError)
    def handle_splitstuff_error(exc: SplitStuffError):
        return jsonify(exc.to_dict()), exc.status

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "internal_error"}), 500


def register_routes(app: Flask) -> None:
    @app.get("/api/health")
    def health_check():
        return jsonify({"status": "ok"})

    @app.get("/api/groups")
    @require_member
    def list_groups(ctx: RequestContext):
        repository = get_repository()
        groups = repository.list_groups(ctx.member_id)
        positions = summarize_member_position_by_group(
            ctx.member_id,
            repository.get_member_expenses(ctx.member_id),
            repository.get_member_settlements(ctx.member_id),
        )
        result = []
        for group in groups:
            group_id = str(group["id"])
            position = positions.get(group_id)
            result.append(
                {
                    "id": group_id,
                    "name": group["name"],
                    "created_by": str(group["created_by"]),
                    "is_creator": ctx.is_self(str(group["created_by"])),
                    "net": to_display(position.net) if position else 0.0,
                }
            )
        return jsonify(result)

    @app.post("/api/groups")
    @require_member
    def create_group(ctx: RequestContext):
        payload = request.get_json(silent=True) or {}
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationError("missing_group_name")

        group_id = get_repository().create_group(name, ctx.member_id)
        return jsonify({"id": group_id, "name": name, "created_by": ctx.member_id}), 201

    @app.get("/api/groups/<group_id>/members")
    @require_member
    def get_group_members(ctx: RequestContext, group_id: str):
        _ensure_group_member(group_id, ctx)
        members = get_repository().get_members(group_id)
        return jsonify([_member_json(member, ctx) for member in members])

    @app.delete("/api/groups/<group_id>/members/<member_id>")
    @require_member
    def remove_group_member(ctx: RequestContext, group_id: str, member_id: str):
        _ensure_group_member(group_id, ctx)
        repository = get_repository()

        group = repository.get_group(group_id)
        if group is None:
            raise NotFound("group_not_found")
        # The creator manages the roster; anyone else may only leave.
        if not (ctx.is_self(str(group["created_by"])) or ctx.is_self(member_id)):
            raise NotAuthorized("not_authorized")

        if not repository.remove_member(group_id, member_id):
            raise NotFound("member_not_found")
        return jsonify({"status": "removed"})

    @app.get("/api/groups/<group_id>/expenses")
    @require_member
    def get_group_expenses(ctx: RequestContext, group_id: str):
        _ensure_group_member(group_id, ctx)
        expenses = get_repository().get_expenses(group_id)
        return jsonify([_expense_json(expense) for expense in expenses])

    @app.post("/api/groups/<group_id>/expenses")
    @require_member
    def add_expense(ctx: RequestContext, group_id: str):
        _ensure_group_member(group_id, ctx)
        repository = get_repository()
        payload = request.get_json(silent=True) or {}

        title = (payload.get("title") or "").strip()
        if not title or payload.get("amount") is None:
            raise ValidationError("missing_fields")
        amount = _parse_amount(payload.get("amount"))

        members = repository.get_members(group_id)
        member_ids = [member.id for member in members]
        if not member_ids:
            raise ValidationError("no_members_to_split")

        paid_by = str(payload.get("paid_by") or ctx.member_id)
        if paid_by not in member_ids:
            raise ValidationError("payer_not_in_group")

        split_type = payload.get("split_type") or "normal"
        if split_type == "normal":
            splits = equal_shares(amount, member_ids)
        elif split_type == "custom":
            percents = payload.get("percents") or {}
            if not isinstance(percents, dict):
                raise ValidationError("invalid_percent")
            if any(str(member_id) not in member_ids for member_id in percents):
                raise ValidationError("invalid_split_members")
            splits = percentage_shares(amount, {str(k): v for k, v in percents.items()})
        else:
            raise ValidationError("invalid_split_type")

        expense_id = repository.add_expense(
            group_id,
            title,
            amount,
            paid_by,
            splits,
            expense_date=_parse_date(payload.get("expense_date")),
            notes=(payload.get("notes") or "").strip() or None,
        )
        return jsonify({"id": expense_id}), 201

    @app.get("/api/groups/<group_id>/settlements")
    @require_member
    def get_group_settlements(ctx: RequestContext, group_id: str):
        _ensure_group_member(group_id, ctx)
        settlements = get_repository().get_settlements(group_id)
        return jsonify([_settlement_json(settlement) for settlement in settlements])

    @app.post("/api/groups/<group_id>/settlements")
    @require_member
    def record_settlement(ctx: RequestContext, group_id: str):
        _ensure_group_member(group_id, ctx)
        repository = get_repository()
        payload = request.get_json(silent=True) or {}

        payer_id = payload.get("payer_id")
        receiver_id = payload.get("receiver_id")
        if payer_id is None or receiver_id is None or payload.get("amount") is None:
            raise ValidationError("missing_fields")
        payer_id, receiver_id = str(payer_id), str(receiver_id)
        if payer_id == receiver_id:
            raise ValidationError("same_member")
        amount = _parse_amount(payload.get("amount"))

        member_ids = {member.id for member in repository.get_members(group_id)}
        if payer_id not in member_ids or receiver_id not in member_ids:
            raise ValidationError("user_not_in_group")

        settlement_id = repository.record_settlement(group_id, payer_id, receiver_id, amount)
        return jsonify({"id": settlement_id, "amount": to_display(amount)}), 201

    @app.get("/api/groups/<group_id>/balances")
    @require_member
    def get_group_balances(ctx: RequestContext, group_id: str):
        _ensure_group_member(group_id, ctx)
        repository = get_repository()

        members = repository.get_members(group_id)
        by_id = {member.id: member for member in members}
        balances = compute_balances(
            by_id.keys(),
            repository.get_expenses(group_id),
            repository.get_settlements(group_id),
        )
        transfers = plan_transfers(balances)
        you_pay, you_receive = transfers_for_member(transfers, ctx.member_id)
        currency = current_app.config["CURRENCY_CODE"]

        return jsonify(
            {
                "balances": [
                    {
                        "member_id": member_id,
                        "name": _display_name(by_id[member_id], ctx),
                        "net_balance": to_display(value),
                    }
                    for member_id, value in balances.items()
                ],
                "transfers": [_transfer_json(t, by_id, ctx) for t in transfers],
                "you_pay": [_transfer_json(t, by_id, ctx, currency=currency) for t in you_pay],
                "you_receive": [_transfer_json(t, by_id, ctx) for t in you_receive],
                "total_to_settle": to_display(total_transferred(transfers)),
            }
        )

    @app.get("/api/groups/<group_id>/transfers/upi")
    @require_member
    def get_upi_link(ctx: RequestContext, group_id: str):
        _ensure_group_member(group_id, ctx)
        payee_id = request.args.get("to")
        if not payee_id:
            raise ValidationError("missing_fields")

        members = {member.id: member for member in get_repository().get_members(group_id)}
        payee = members.get(payee_id)
        if payee is None:
            raise NotFound("member_not_found")
        if not payee.upi_id:
            raise ValidationError("missing_upi_id")

        raw_amount = request.args.get("amount")
        amount = _parse_amount(raw_amount) if raw_amount else None
        link = build_upi_link(
            payee.upi_id,
            payee.name,
            amount=amount,
            note=request.args.get("note") or "SplitStuff settlement",
            currency=current_app.config["CURRENCY_CODE"],
        )
        return jsonify({"link": link})

    @app.get("/api/summary")
    @require_member
    def get_summary(ctx: RequestContext):
        repository = get_repository()
        position = summarize_member_position(
            ctx.member_id,
            repository.get_member_expenses(ctx.member_id),
            repository.get_member_settlements(ctx.member_id),
        )
        return jsonify(
            {
                "total_owed": to_display(max(position.total_owed, Decimal("0"))),
                "total_owed_to_you": to_display(max(position.total_owed_to_you, Decimal("0"))),
                "net": to_display(position.net),
            }
        )


def _ensure_group_member(group_id: str, ctx: RequestContext) -> None:
    if not get_repository().is_member(group_id, ctx.member_id):
        raise NotAuthorized("not_authorized")


def _parse_amount(value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError("invalid_amount")
    try:
        amount = quantize_cents(to_decimal(value))
    except ValueError:
        raise ValidationError("invalid_amount") from None
    if amount <= 0:
        raise ValidationError("invalid_amount")
    return amount


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError("invalid_date") from None


def _display_name(member: Member, ctx: RequestContext) -> str:
    return f"{member.name} (You)" if ctx.is_self(member.id) else member.name


def _member_json(member: Member, ctx: RequestContext) -> Dict[str, Any]:
    return {
        "id": member.id,
        "name": _display_name(member, ctx),
        "upi_id": member.upi_id,
    }


def _expense_json(expense: Expense) -> Dict[str, Any]:
    return {
        "id": expense.id,
        "title": expense.title,
        "amount": to_display(expense.amount),
        "paid_by": expense.paid_by,
        "expense_date": expense.expense_date.isoformat() if expense.expense_date else None,
        "notes": expense.notes,
        "splits": [
            {"member_id": split.member_id, "share_amount": to_display(split.share_amount)}
            for split in expense.splits
        ],
    }


def _settlement_json(settlement: Settlement) -> Dict[str, Any]:
    return {
        "id": settlement.id,
        "payer_id": settlement.payer_id,
        "receiver_id": settlement.receiver_id,
        "amount": to_display(settlement.amount),
        "status": settlement.status.value,
    }


def _transfer_json(
    transfer: Transfer,
    members: Dict[str, Member],
    ctx: RequestContext,
    currency: Optional[str] = None,
) -> Dict[str, Any]:
    payer = members[transfer.from_member]
    payee = members[transfer.to_member]
    data: Dict[str, Any] = {
        "from_member_id": transfer.from_member,
        "from_name": _display_name(payer, ctx),
        "to_member_id": transfer.to_member,
        "to_name": _display_name(payee, ctx),
        "amount": to_display(transfer.amount),
    }
    # Only the paying side gets a link, and only if the payee has a UPI id.
    if currency and payee.upi_id:
        data["upi_link"] = upi_link_for_transfer(
            transfer,
            payee,
            note="SplitStuff settlement",
            currency=currency,
        )
    return data


app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
