# Overview: Flask API routes for invoices and their edit chain.

"""Invoice API routes with permission enforcement"""

from flask import Blueprint, g, jsonify, request

from ..decorators import idempotent, require_auth, require_permission
from ..services import invoice_service
from ..services.invoice_service import InvoiceView
from ..validation import DomainError
from .common import domain_error_response, internal_error_response, json_body, pagination_args


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoice")


@invoices_bp.post("")
@require_auth
@require_permission("invoice.create")
@idempotent
def create_invoice_route():
    """
    Create a base invoice.

    Body: {customerId, salesRepId, items[], depositReceived?, paymentTerms?,
    message?, signature?}
    """
    try:
        data = json_body()
        invoice = invoice_service.create_invoice(
            customer_id=data.get("customerId"),
            sales_rep_id=data.get("salesRepId"),
            items=data.get("items"),
            deposit_received=data.get("depositReceived", 0),
            payment_terms=data.get("paymentTerms"),
            message=data.get("message"),
            signature=data.get("signature"),
            user_id=g.current_user.id,
        )
        view = InvoiceView(invoice=invoice, current=invoice)
        return jsonify({"invoice": view.to_dict()}), 201

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to create invoice", e)


@invoices_bp.get("")
@require_auth
@require_permission("invoice.view")
def list_invoices_route():
    """Current views, newest first. ?status= filters on the current snapshot."""
    try:
        limit, offset = pagination_args()
        views, total = invoice_service.list_invoices(
            status=request.args.get("status"), limit=limit, offset=offset
        )
        return jsonify({
            "invoices": [view.to_dict() for view in views],
            "total": total,
            "limit": limit,
            "offset": offset,
        }), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to list invoices", e)


@invoices_bp.get("/<int:invoice_id>")
@require_auth
@require_permission("invoice.view")
def get_invoice_route(invoice_id: int):
    try:
        view = invoice_service.get_invoice_view(invoice_id)
        return jsonify({"invoice": view.to_dict()}), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to load invoice", e)


@invoices_bp.post("/<int:invoice_id>/edits")
@require_auth
@require_permission("invoice.update")
@idempotent
def append_edit_route(invoice_id: int):
    """
    Append an edit to the invoice's chain.

    depositReceived is the new cumulative deposit. Omitted fields carry over
    from the current version.
    """
    try:
        data = json_body()
        edit = invoice_service.append_edit(
            invoice_id,
            items=data.get("items"),
            deposit_received=data.get("depositReceived"),
            payment_method=data.get("paymentMethod"),
            payment_terms=data.get("paymentTerms"),
            sales_rep_id=data.get("salesRepId"),
            message=data.get("message"),
            signature=data.get("signature"),
            user_id=g.current_user.id,
        )
        view = invoice_service.get_invoice_view(invoice_id)
        return jsonify({"edit": edit.to_dict(), "invoice": view.to_dict()}), 201

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to append invoice edit", e)


@invoices_bp.get("/<int:invoice_id>/edits")
@require_auth
@require_permission("invoice.view")
def list_edits_route(invoice_id: int):
    try:
        edits = invoice_service.list_edits(invoice_id)
        return jsonify({"edits": [edit.to_dict() for edit in edits], "count": len(edits)}), 200

    except DomainError as e:
        return domain_error_response(e)
    except Exception as e:
        return internal_error_response("Failed to list invoice edits", e)
