# Overview: Flask API routes for receipts, including generation from invoice edits.

from flask import Blueprint, g, jsonify, request

from ..decorators import idempotent, require_auth, require_permission
from ..services import generation_service, receipt_service
from ..validation import DomainError, optional_bool
from .common import domain_error_response, internal_error_response, json_body, pagination_args


receipts_bp = Blueprint("receipts", __name__, url_prefix="/api/receipt")


@receipts_bp.post("")
@require_auth
@require_permission("receipt.create")
@idempotent
def create_receipt_route():
    """
    Create a cash-sale receipt.

    Body: {items[], customerId?, salesRepId?, message?, signature?, saveDraft?}
    """
    try:
        data = json_body()
        receipt = receipt_service.create_cash_receipt(
            items=data.get("items"),
            customer_id=data.get("customerId"),
            sales_rep_id=data.get("salesRepId"),
            message=data.get("message"),
            signature=data.get("signature"),
            save_draft=optional_bool(data.get("saveDraft"), "saveDraft"),
            user_id=g.current_user.id,
        )
        return jsonify({"receipt": receipt.to_dict()}), 201

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to create receipt", e)


@receipts_bp.post("/generate-from-invoice")
@require_auth
@require_permission("receipt.create")
def generate_from_invoice_route():
    """
    Generate the receipt for one invoice edit's deposit.

    Safe to retry: 201 when a receipt was created, 200 with alreadyExists
    when one already existed for (invoiceId, editId).
    """
    try:
        data = json_body()
        result = generation_service.generate_receipt_from_invoice(
            invoice_id=data.get("invoiceId"),
            edit_id=data.get("editId"),
            signature=data.get("signature"),
            user_id=g.current_user.id,
        )
        status_code = 200 if result.already_exists else 201
        return jsonify({
            "receipt": result.document.to_dict(),
            "alreadyExists": result.already_exists,
        }), status_code

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to generate receipt from invoice", e)


@receipts_bp.get("")
@require_auth
@require_permission("receipt.view")
def list_receipts_route():
    try:
        limit, offset = pagination_args()
        receipts, total = receipt_service.list_receipts(
            sale_type=request.args.get("saleType"),
            status=request.args.get("status"),
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "receipts": [receipt.to_dict() for receipt in receipts],
            "total": total,
            "limit": limit,
            "offset": offset,
        }), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to list receipts", e)


@receipts_bp.get("/<int:receipt_id>")
@require_auth
@require_permission("receipt.view")
def get_receipt_route(receipt_id: int):
    try:
        receipt = receipt_service.get_receipt(receipt_id)
        return jsonify({"receipt": receipt.to_dict()}), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to load receipt", e)
