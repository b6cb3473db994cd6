"""
Flask adapter for the CRUD engines.

Each request constructs an engine with request-bound collaborators, runs the
engine's activation inside ``asyncio.run`` and closes it before responding:

- FlashNotifier: notifications become flashed messages
- RedirectNavigator: the last navigation request becomes the redirect
- register_crud_screens: list, create, edit and delete routes for one entity
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from flask import Blueprint, current_app, flash, redirect, render_template, request
from werkzeug.datastructures import MultiDict

from app.bizadmin.crud.collaborators import RecordingNavigator
from app.bizadmin.crud.configuration import FormConfiguration, FormEvents, ListConfiguration
from app.bizadmin.crud.descriptors import FieldKind, FieldOption, FilterInputKind
from app.bizadmin.crud.entity import display_label, entity_id
from app.bizadmin.crud.errors import ServiceError, error_message
from app.bizadmin.crud.form_engine import FormEngine, FormMode
from app.bizadmin.crud.formatting import CellFormat
from app.bizadmin.crud.list_engine import ASC, DESC, ListEngine

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "on", "yes")


class FlashNotifier:
    def success(self, message: str) -> None:
        flash(message, "success")

    def error(self, message: str) -> None:
        flash(message, "danger")

    def warning(self, message: str) -> None:
        flash(message, "warning")

    def info(self, message: str) -> None:
        flash(message, "info")

    async def confirm_delete(self, label: str) -> bool:
        # The confirmation page posts confirm=yes; anything else is a decline.
        return (request.form.get("confirm") or "").strip().lower() == "yes"


class RedirectNavigator(RecordingNavigator):
    def response(self, default: str | None = None):
        target = self.target or default
        return redirect(target) if target else None


def cell_format() -> CellFormat:
    return CellFormat(
        currency_symbol=current_app.config.get("CURRENCY_SYMBOL", "R$"),
        date_format=current_app.config.get("DATE_FORMAT", "%d/%m/%Y"),
    )


def form_values(config: FormConfiguration[Any], form: MultiDict) -> dict[str, Any]:
    """Submitted form data keyed by field. An unchecked checkbox is absent from the post."""
    values: dict[str, Any] = {}
    for f in config.fields:
        if f.disabled:
            continue
        if f.kind == FieldKind.CHECKBOX:
            values[f.key] = (form.get(f.key) or "").strip().lower() in _TRUTHY
        elif f.key in form:
            values[f.key] = form.get(f.key)
    return values


def filter_values(config: ListConfiguration[Any], args: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for f in config.filters:
        raw = (args.get(f.key) or "").strip()
        if f.input_kind == FilterInputKind.CHECKBOX:
            values[f.key] = raw.lower() in _TRUTHY
        elif f.input_kind == FilterInputKind.SELECT and raw.isdigit():
            values[f.key] = int(raw)
        else:
            values[f.key] = raw
    return values


def as_options(records: list[Any]) -> list[FieldOption]:
    return [FieldOption(value=entity_id(r), label=display_label(r, "")) for r in records]


def _filter_options(
    config: ListConfiguration[Any], filter_choices: Callable[[], Mapping[str, list[Any]]] | None
) -> dict[str, list[FieldOption]]:
    dynamic = filter_choices() if filter_choices else {}
    return {f.key: list(f.options) or as_options(dynamic.get(f.key, [])) for f in config.filters}


def register_crud_screens(
    bp: Blueprint,
    *,
    list_config: ListConfiguration[Any],
    form_config: FormConfiguration[Any],
    service_factory: Callable[[], Any],
    form_events: Callable[[], FormEvents] | None = None,
    filter_choices: Callable[[], Mapping[str, list[Any]]] | None = None,
) -> None:
    """
    Add list/new/edit/delete routes at ``list_config.base_route`` to `bp`.
    `service_factory` is called once per request (services hold the request session).
    `filter_choices` supplies select-filter options that come from the database,
    keyed by filter key, as id/name records.
    """
    base = list_config.base_route.rstrip("/")

    def list_view():
        engine = ListEngine(list_config, service_factory(), notifier=FlashNotifier(), cell_format=cell_format())
        filters = filter_values(list_config, request.args)
        sort_key = (request.args.get("sort") or "").strip()
        direction = (request.args.get("dir") or ASC).strip().lower()
        column = list_config.column_for(sort_key) if sort_key else None

        async def activate() -> None:
            await engine.start()
            if any(filters.values()):
                await engine.apply_filters(filters)
            if column is not None and column.sortable:
                engine.sort(column.key, direction if direction in (ASC, DESC) else ASC)

        try:
            asyncio.run(activate())
            return render_template(
                "crud/list.html",
                engine=engine,
                config=list_config,
                filters=engine.active_filters,
                filter_options=_filter_options(list_config, filter_choices),
                items=engine.filtered_items,
                sort_key=engine.sort_key,
                sort_dir=engine.sort_direction,
            )
        finally:
            engine.close()

    def form_view(entity_id: int | None = None):
        navigator = RedirectNavigator()
        engine = FormEngine(
            form_config,
            service_factory(),
            notifier=FlashNotifier(),
            navigator=navigator,
            route_id=entity_id,
            events=form_events() if form_events else None,
        )
        posted = request.method == "POST"

        async def activate() -> None:
            await engine.start()
            if not posted:
                return
            if request.form.get("action") == "cancel":
                engine.cancel()
                return
            if engine.mode in (FormMode.READY_CREATE, FormMode.READY_EDIT):
                engine.set_values(form_values(form_config, request.form))
                await engine.submit()

        try:
            asyncio.run(activate())
            if navigator.target:
                return navigator.response()
            status = 400 if posted else 200
            return (
                render_template("crud/form.html", engine=engine, config=form_config, FieldKind=FieldKind),
                status,
            )
        finally:
            engine.close()

    def delete_view(entity_id: int):
        service = service_factory()
        try:
            item = service.fetch_by_id(entity_id)
        except ServiceError as e:
            flash(error_message(e, f"{list_config.entity_name} not found"), "danger")
            return redirect(base)
        if request.method == "GET":
            return render_template(
                "crud/confirm_delete.html",
                config=list_config,
                item=item,
                label=display_label(item, list_config.entity_name),
            )

        engine = ListEngine(list_config, service, notifier=FlashNotifier(), cell_format=cell_format())
        try:
            deleted = asyncio.run(engine.confirm_and_delete(item))
        finally:
            engine.close()
        logger.info("%s #%s delete requested (deleted=%s)", list_config.entity_name, entity_id, deleted)
        return redirect(base)

    bp.add_url_rule(base, endpoint="list", view_func=list_view, methods=["GET"])
    bp.add_url_rule(f"{base}/new", endpoint="new", view_func=form_view, methods=["GET", "POST"])
    bp.add_url_rule(f"{base}/<int:entity_id>/edit", endpoint="edit", view_func=form_view, methods=["GET", "POST"])
    bp.add_url_rule(f"{base}/<int:entity_id>/delete", endpoint="delete", view_func=delete_view, methods=["GET", "POST"])
