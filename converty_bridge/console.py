"""Interactive terminal menu over the record store and the order service."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from converty_bridge.core.errors import BridgeError
from converty_bridge.schemas.orders import OrderQuery

logger = logging.getLogger(__name__)

MENU_ITEMS = (
    "List All Records",
    "List Issues",
    "List Orders",
    "Query by ID",
    "Insert New Record",
    "Exit",
)

_ISSUE_FIELDS = (
    ("type", "Enter Issue Type (e.g., defective, delivery)"),
    ("name", "Enter Name"),
    ("product", "Enter Product"),
    ("description", "Enter Description"),
    ("phone_number", "Enter Phone Number"),
    ("status", "Enter Detail Status (e.g., Pending, Resolved)"),
)


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def render_table(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render rows as a bordered, left-aligned text table."""
    body = [[str(cell) for cell in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in body:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))

    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def line(cells: Sequence[str]) -> str:
        return "|" + "|".join(
            f" {cell.ljust(width)} " for cell, width in zip(cells, widths)
        ) + "|"

    out = [border, line(headers), border]
    out.extend(line(row) for row in body)
    out.append(border)
    return "\n".join(out)


class PromptAborted(Exception):
    """Raised when the user closes the input stream mid-prompt."""


class ConsoleApp:
    """Menu loop that prints every error and returns to the menu."""

    def __init__(
        self,
        record_store: Any,
        order_service: Any,
        *,
        prompt: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ) -> None:
        self._records = record_store
        self._orders = order_service
        self._prompt = prompt
        self._print = output

    async def _ask(self, label: str, default: Optional[str] = None) -> str:
        suffix = f" [{default}]" if default is not None else ""
        try:
            answer = await asyncio.to_thread(self._prompt, f"{label}{suffix}: ")
        except (EOFError, KeyboardInterrupt) as exc:
            raise PromptAborted(str(exc)) from exc
        answer = answer.strip()
        if not answer and default is not None:
            return default
        return answer

    async def run(self) -> None:
        handlers = {
            "List All Records": self.list_records,
            "List Issues": self.list_issues,
            "List Orders": self.list_orders,
            "Query by ID": self.query_by_id,
            "Insert New Record": self.insert_record,
        }
        while True:
            self._print("\nSelect Action")
            for index, item in enumerate(MENU_ITEMS, start=1):
                self._print(f"  {index}. {item}")
            try:
                choice = await self._ask("Choice")
            except PromptAborted:
                self._print("Exiting...")
                return
            action = self._resolve_choice(choice)
            if action is None:
                self._print(f"Unknown option: {choice}")
                continue
            if action == "Exit":
                self._print("Exiting...")
                return
            try:
                await handlers[action]()
            except PromptAborted:
                self._print("Prompt failed: input closed")
            except BridgeError as exc:
                logger.debug("Console action %s failed", action, exc_info=True)
                self._print(f"Error: {exc.message}")
            except (ValueError, OverflowError) as exc:
                logger.debug("Console action %s rejected input", action, exc_info=True)
                self._print(f"Invalid input: {exc}")

    @staticmethod
    def _resolve_choice(choice: str) -> Optional[str]:
        if choice.isdecimal() and 1 <= int(choice) <= len(MENU_ITEMS):
            return MENU_ITEMS[int(choice) - 1]
        for item in MENU_ITEMS:
            if item.lower() == choice.lower():
                return item
        return None

    async def list_records(self) -> None:
        records = self._records.list_records()
        if not records:
            self._print("No records found in the database")
            return
        rows = [
            [
                str(record.id),
                str(record.user_id),
                record.type,
                truncate(json.dumps(record.details), 50),
                record.status,
                format_timestamp(record.created_at),
            ]
            for record in records
        ]
        self._print("\nRecords from interactions:")
        self._print(
            render_table(["ID", "UserID", "Type", "Details", "Status", "CreatedAt"], rows)
        )

    async def list_issues(self) -> None:
        issues = self._records.list_issues()
        if not issues:
            self._print("No issues found in the database")
            return
        rows = []
        for issue in issues:
            details = issue.details
            rows.append(
                [
                    str(details.get("type", "")),
                    str(details.get("name", "")),
                    str(details.get("product", "")),
                    truncate(str(details.get("description", "")), 60),
                    str(details.get("phone_number", "")),
                    str(details.get("status", "")),
                    format_timestamp(issue.created_at),
                ]
            )
        self._print("\nIssues from interactions:")
        self._print(
            render_table(
                ["Type", "Name", "Product", "Description", "Phone Number", "Status", "CreatedAt"],
                rows,
            )
        )

    async def list_orders(self) -> None:
        page_raw = await self._ask("Enter Page", default="1")
        limit_raw = await self._ask("Enter Limit", default="10")
        if not page_raw.isdecimal() or int(page_raw) < 1:
            self._print("Invalid page number")
            return
        if not limit_raw.isdecimal() or int(limit_raw) < 1:
            self._print("Invalid limit number")
            return
        status = await self._ask("Enter Status (e.g., pending, shipped, optional)")

        query = OrderQuery(
            page=int(page_raw),
            limit=int(limit_raw),
            status=status or None,
            archived=False,
        )
        orders = await self._orders.list_orders(query)
        if not orders:
            self._print("No orders found")
            return
        rows = [
            [
                order.id,
                order.customer.name,
                truncate(order.customer.address, 60),
                order.customer.note,
                order.customer.email,
                order.customer.phone,
                order.customer.city,
                order.status,
                format_timestamp(order.created_at),
            ]
            for order in orders
        ]
        self._print("\nOrders from Converty:")
        self._print(
            render_table(
                ["ID", "Name", "Address", "Note", "Email", "Phone", "City", "Status", "CreatedAt"],
                rows,
            )
        )

    async def query_by_id(self) -> None:
        raw_id = await self._ask("Enter Record ID")
        if not raw_id.isdecimal():
            self._print("Invalid ID format")
            return
        record = self._records.get_record(int(raw_id))
        self._print(
            f"ID: {record.id}\nUserID: {record.user_id}\nType: {record.type}\n"
            f"Details: {json.dumps(record.details, indent=2)}\n"
            f"Status: {record.status}\nCreatedAt: {record.created_at}"
        )

    async def insert_record(self) -> None:
        raw_user_id = await self._ask("Enter User ID")
        if not raw_user_id.isdecimal():
            self._print("Invalid User ID format")
            return
        record_type = await self._ask("Enter Table Type (address/order/issue)")

        details: Dict[str, Any]
        if record_type == "issue":
            details = {}
            for key, label in _ISSUE_FIELDS:
                details[key] = await self._ask(label)
        else:
            raw_details = await self._ask('Enter JSON Details (e.g., {"key": "value"})')
            try:
                details = json.loads(raw_details)
            except json.JSONDecodeError as exc:
                self._print(f"Invalid JSON format: {exc}")
                return
            if not isinstance(details, dict):
                self._print("Invalid JSON format: expected an object")
                return

        status = await self._ask("Enter Table Status (pending/completed)")
        self._records.insert_record(
            user_id=int(raw_user_id),
            record_type=record_type,
            details=details,
            status=status,
        )
        self._print("Record created successfully!")


__all__ = ["ConsoleApp", "MENU_ITEMS", "render_table", "truncate"]
