"""
Management command to publish an execution lifecycle event by hand.

Loads an execution from a JSON file and runs it through the configured
execution listener, the same way the orchestration engine would.

Usage:
    python manage.py dispatch_execution_event execution.json
    python manage.py dispatch_execution_event execution.json --phase complete
    python manage.py dispatch_execution_event execution.json --phase failed --echo-url http://echo:8089
"""

import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from apps.notify.clients.echo import EchoClient
from apps.notify.clients.front50 import Front50Client
from apps.notify.dtos import DispatchStatus
from apps.notify.listener import (
    PHASE_COMPLETE,
    PHASE_FAILED,
    PHASE_STARTING,
    EventNotifyingExecutionListener,
    get_execution_listener,
)
from apps.orchestration.dtos import Execution
from apps.orchestration.models import ExecutionStatus


class Command(BaseCommand):
    help = "Publish a lifecycle event for an execution loaded from a JSON file"

    def add_arguments(self, parser):
        parser.add_argument(
            "file",
            type=str,
            help="Path to a JSON file describing the execution",
        )
        parser.add_argument(
            "--phase",
            type=str,
            choices=[PHASE_STARTING, PHASE_COMPLETE, PHASE_FAILED],
            default=PHASE_STARTING,
            help="Lifecycle phase to publish (default: 'starting')",
        )
        parser.add_argument(
            "--echo-url",
            type=str,
            help="Override the event service base URL",
        )
        parser.add_argument(
            "--front50-url",
            type=str,
            help="Override the application registry base URL",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the dispatch result as JSON",
        )

    def handle(self, *args, **options):
        execution = self._load_execution(options["file"])
        listener = self._get_listener(options)

        phase = options["phase"]
        if phase == PHASE_STARTING:
            result = listener.before_execution(execution)
        else:
            was_successful = phase == PHASE_COMPLETE
            final_status = ExecutionStatus.SUCCEEDED if was_successful else ExecutionStatus.TERMINAL
            result = listener.after_execution(execution, final_status, was_successful)

        if options.get("json"):
            self.stdout.write(json.dumps(result.to_dict(), indent=2))
            return

        if result.status == DispatchStatus.PUBLISHED:
            self.stdout.write(self.style.SUCCESS(f"✓ Published {result.event_type}"))
            self.stdout.write(f"  Execution: {result.execution_id}")
            self.stdout.write(f"  Application notifications added: {result.notifications_added}")
            self.stdout.write(f"  Duration: {result.duration_ms:.1f} ms")
        elif result.status == DispatchStatus.SKIPPED:
            self.stdout.write(
                self.style.WARNING(f"Skipped execution {result.execution_id} (suspended)")
            )
        else:
            self.stdout.write(self.style.ERROR("✗ Failed to publish event"))
            self.stdout.write(f"  Execution: {result.execution_id}")
            if result.error:
                self.stdout.write(f"  Error: {result.error.error_type}: {result.error.message}")

    def _load_execution(self, path: str) -> Execution:
        file_path = Path(path)
        if not file_path.is_file():
            raise CommandError(f"Execution file not found: {path}")

        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CommandError(f"Invalid JSON in {path}: {e}")

        try:
            return Execution.from_dict(data)
        except (KeyError, ValueError) as e:
            raise CommandError(f"Invalid execution in {path}: {e}")

    def _get_listener(self, options) -> EventNotifyingExecutionListener:
        if not options.get("echo_url") and not options.get("front50_url"):
            return get_execution_listener()

        default = get_execution_listener()
        echo_client = (
            EchoClient(options["echo_url"], timeout=default.echo_client.timeout)
            if options.get("echo_url")
            else default.echo_client
        )
        front50_client = (
            Front50Client(options["front50_url"], timeout=default.front50_client.timeout)
            if options.get("front50_url")
            else default.front50_client
        )
        return EventNotifyingExecutionListener(echo_client, front50_client)
