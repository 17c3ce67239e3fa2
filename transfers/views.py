from urllib.parse import urlencode

from django.contrib import messages
from django.http import Http404, JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_http_methods

from .dashboard import DashboardController
from .store import get_store
from .table import EMPTY_TABLE_MESSAGE, build_rows


def _controller_for(request):
    query = (request.GET.get("q") or "").strip()
    selected_date = (request.GET.get("date") or "").strip() or None
    return DashboardController(get_store(), query=query, selected_date=selected_date)


def _filter_params(controller):
    params = {}
    if controller.state.query:
        params["q"] = controller.state.query
    if controller.state.selected_date:
        params["date"] = str(controller.state.selected_date)
    return urlencode(params)


def _with_filters(path, controller):
    params = _filter_params(controller)
    return f"{path}?{params}" if params else path


def _failure_status(controller):
    return 400 if controller.state.errors else 503


def _render_dashboard(request, controller, status=200):
    state = controller.state
    if state.error:
        messages.error(request, state.error)

    pending_record = None
    if state.pending_delete is not None:
        pending_record = controller.find(state.pending_delete)

    return render(
        request,
        "transfers/dashboard.html",
        {
            "rows": build_rows(controller.filtered),
            "total_count": len(state.records),
            "empty_message": EMPTY_TABLE_MESSAGE,
            "query": state.query,
            "selected_date": state.selected_date or "",
            "filter_params": _filter_params(controller),
            "dashboard_url": _with_filters("/", controller),
            "mode": state.mode,
            "form": controller.bound_form() if state.mode.is_open else None,
            "pending_record": pending_record,
        },
        status=status,
    )


def _record_or_404(controller, transfer_id):
    record = controller.find(transfer_id)
    if record is None:
        raise Http404("Transfer not found.")
    return record


@require_GET
def dashboard(request):
    controller = _controller_for(request)
    controller.refresh()
    return _render_dashboard(request, controller, status=503 if controller.state.error else 200)


@require_http_methods(["GET", "POST"])
def transfer_create(request):
    controller = _controller_for(request)
    controller.refresh()
    controller.open_create()

    if request.method == "POST":
        if controller.submit(request.POST):
            messages.success(request, "Flight saved.")
            return redirect(_with_filters("/", controller))
        return _render_dashboard(request, controller, status=_failure_status(controller))

    return _render_dashboard(request, controller)


@require_http_methods(["GET", "POST"])
def transfer_edit(request, transfer_id):
    controller = _controller_for(request)
    controller.refresh()
    if controller.state.error:
        return _render_dashboard(request, controller, status=503)
    controller.open_edit(_record_or_404(controller, transfer_id))

    if request.method == "POST":
        if controller.submit(request.POST):
            messages.success(request, "Flight updated.")
            return redirect(_with_filters("/", controller))
        return _render_dashboard(request, controller, status=_failure_status(controller))

    return _render_dashboard(request, controller)


@require_http_methods(["GET", "POST"])
def transfer_delete(request, transfer_id):
    controller = _controller_for(request)
    controller.refresh()
    if controller.state.error:
        return _render_dashboard(request, controller, status=503)
    record = _record_or_404(controller, transfer_id)
    controller.request_delete(record.id)

    # GET only asks for confirmation; nothing is deleted until the POST.
    if request.method == "POST":
        if controller.confirm_delete():
            messages.success(request, f"Flight {record.flight_code} deleted.")
        else:
            messages.error(request, controller.state.error)
        return redirect(_with_filters("/", controller))

    return _render_dashboard(request, controller)


@require_GET
def transfers_api(request):
    controller = _controller_for(request)
    controller.refresh()
    if controller.state.error:
        return JsonResponse(
            {"error": controller.state.error, "code": "store_unavailable"},
            status=503,
        )

    transfers = controller.filtered
    return JsonResponse(
        {
            "count": len(transfers),
            "query": controller.state.query,
            "date": controller.state.selected_date,
            "transfers": [record.as_dict() for record in transfers],
        }
    )
