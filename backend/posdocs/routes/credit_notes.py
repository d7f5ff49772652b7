# Overview: Flask API routes for credit notes.

from flask import Blueprint, g, jsonify, request

from ..decorators import idempotent, require_auth, require_permission
from ..services import credit_note_service
from ..validation import DomainError
from .common import domain_error_response, internal_error_response, json_body, pagination_args


credit_notes_bp = Blueprint("credit_notes", __name__, url_prefix="/api/creditNote")


@credit_notes_bp.post("")
@require_auth
@require_permission("creditNote.create")
@idempotent
def create_credit_note_route():
    """
    Body: {customerId, salesRepId, products[], salesRepSignature, message?, saveDraft?}

    saveDraft=true keeps the note editable; otherwise it is APPROVED at once.
    """
    try:
        data = json_body()
        credit_note = credit_note_service.create_credit_note(
            customer_id=data.get("customerId"),
            sales_rep_id=data.get("salesRepId"),
            products=data.get("products"),
            sales_rep_signature=data.get("salesRepSignature"),
            message=data.get("message"),
            save_draft=data.get("saveDraft"),
            user_id=g.current_user.id,
        )
        return jsonify({"creditNote": credit_note.to_dict()}), 201

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to create credit note", e)


@credit_notes_bp.get("")
@require_auth
@require_permission("creditNote.view")
def list_credit_notes_route():
    try:
        limit, offset = pagination_args()
        credit_notes, total = credit_note_service.list_credit_notes(
            status=request.args.get("status"), limit=limit, offset=offset
        )
        return jsonify({
            "creditNotes": [note.to_dict() for note in credit_notes],
            "total": total,
            "limit": limit,
            "offset": offset,
        }), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to list credit notes", e)


@credit_notes_bp.get("/<int:credit_note_id>")
@require_auth
@require_permission("creditNote.view")
def get_credit_note_route(credit_note_id: int):
    try:
        credit_note = credit_note_service.get_credit_note(credit_note_id)
        return jsonify({"creditNote": credit_note.to_dict()}), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to load credit note", e)


@credit_notes_bp.put("/<int:credit_note_id>")
@require_auth
@require_permission("creditNote.update")
@idempotent
def update_credit_note_route(credit_note_id: int):
    """Rewrite a DRAFT credit note. 403 once APPROVED."""
    try:
        credit_note = credit_note_service.update_credit_note(
            credit_note_id, json_body(), user_id=g.current_user.id
        )
        return jsonify({"creditNote": credit_note.to_dict()}), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to update credit note", e)
