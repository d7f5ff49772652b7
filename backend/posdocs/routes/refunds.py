# Overview: Flask API routes for refunds, including generation from credit notes.

from flask import Blueprint, g, jsonify, request

from ..decorators import idempotent, require_auth, require_permission
from ..services import generation_service, refund_service
from ..validation import DomainError
from .common import domain_error_response, internal_error_response, json_body, pagination_args


refunds_bp = Blueprint("refunds", __name__, url_prefix="/api/refund")


@refunds_bp.post("")
@require_auth
@require_permission("refund.create")
@idempotent
def create_refund_route():
    """
    Body: {source, creditNoteId?, customerId, salesRepId, products[],
    salesRepSignature, message?, saveDraft?}

    409 when source is FROM_CREDITNOTE and that credit note already has a refund.
    """
    try:
        data = json_body()
        refund = refund_service.create_refund(
            source=data.get("source"),
            credit_note_id=data.get("creditNoteId"),
            customer_id=data.get("customerId"),
            sales_rep_id=data.get("salesRepId"),
            products=data.get("products"),
            sales_rep_signature=data.get("salesRepSignature"),
            message=data.get("message"),
            save_draft=data.get("saveDraft"),
            user_id=g.current_user.id,
        )
        return jsonify({"refund": refund.to_dict()}), 201

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to create refund", e)


@refunds_bp.post("/generate-from-credit-note")
@require_auth
@require_permission("refund.create")
def generate_from_credit_note_route():
    """
    Refund an APPROVED credit note. Safe to retry: 201 when created, 200 with
    alreadyExists when the credit note was already refunded.
    """
    try:
        data = json_body()
        result = generation_service.generate_refund_from_credit_note(
            credit_note_id=data.get("creditNoteId"),
            signature=data.get("signature"),
            user_id=g.current_user.id,
        )
        status_code = 200 if result.already_exists else 201
        return jsonify({
            "refund": result.document.to_dict(),
            "alreadyExists": result.already_exists,
        }), status_code

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to generate refund from credit note", e)


@refunds_bp.get("")
@require_auth
@require_permission("refund.view")
def list_refunds_route():
    try:
        limit, offset = pagination_args()
        refunds, total = refund_service.list_refunds(
            status=request.args.get("status"),
            source=request.args.get("source"),
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "refunds": [refund.to_dict() for refund in refunds],
            "total": total,
            "limit": limit,
            "offset": offset,
        }), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to list refunds", e)


@refunds_bp.get("/<int:refund_id>")
@require_auth
@require_permission("refund.view")
def get_refund_route(refund_id: int):
    try:
        refund = refund_service.get_refund(refund_id)
        return jsonify({"refund": refund.to_dict()}), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to load refund", e)


@refunds_bp.put("/<int:refund_id>")
@require_auth
@require_permission("refund.update")
@idempotent
def update_refund_route(refund_id: int):
    """Rewrite a DRAFT refund. 403 once REFUNDED."""
    try:
        refund = refund_service.update_refund(refund_id, json_body(), user_id=g.current_user.id)
        return jsonify({"refund": refund.to_dict()}), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to update refund", e)
