"""Unit tests for ValidationExecutor dispatch."""

import zipfile
from typing import BinaryIO

from pkgvault.archive.reader import build_archive, read_archive
from pkgvault.archive.stream import ReplayableStream
from pkgvault.validation.base import (
    Capability,
    Severity,
    ValidationMessage,
    ValidationViolation,
    Validator,
)
from pkgvault.validation.executor import ValidationExecutor, errors_of


class RecordingValidator(Validator):
    """Validator that records every hook call."""

    def __init__(self, *capabilities: Capability, wants_data: bool = True) -> None:
        self.capabilities = frozenset(capabilities)
        self.wants_data = wants_data
        self.calls: list[tuple[str, str]] = []
        self.streams: list[BinaryIO] = []
        self.payloads: list[bytes] = []

    def validate_filter(self, workspace_filter):
        self.calls.append(("filter", ",".join(workspace_filter.root_paths())))
        return []

    def validate_path(self, path: str) -> list[ValidationMessage]:
        self.calls.append(("path", path))
        return []

    def should_validate_data(self, path: str) -> bool:
        return self.wants_data

    def validate_data(self, stream: BinaryIO, path: str) -> list[ValidationMessage]:
        self.calls.append(("data", path))
        self.streams.append(stream)
        self.payloads.append(stream.read())
        return []

    def done(self) -> list[ValidationMessage]:
        self.calls.append(("done", ""))
        return [ValidationMessage(Severity.INFO, "finished")]


def _archive():
    return read_archive(
        build_archive(
            "g:a:1.0",
            files={"/apps/a.txt": "alpha", "/apps/b.txt": "beta"},
            filter_roots=["/apps"],
        )
    )


class TestDispatch:
    """Tests for capability-based dispatch."""

    def test_only_declared_hooks_called(self) -> None:
        """Validators only receive calls for capabilities they declare."""
        path_only = RecordingValidator(Capability.PATH)
        filter_only = RecordingValidator(Capability.FILTER)
        executor = ValidationExecutor({"path": path_only, "filter": filter_only})

        executor.validate_archive(_archive())

        assert [kind for kind, _ in path_only.calls] == ["path", "path", "done"]
        assert filter_only.calls == [("filter", "/apps"), ("done", "")]

    def test_validators_for_capability(self) -> None:
        """The capability index keeps registration order."""
        first = RecordingValidator(Capability.DATA, Capability.PATH)
        second = RecordingValidator(Capability.DATA)
        executor = ValidationExecutor({"first": first, "second": second})

        assert list(executor.validators_for(Capability.DATA)) == ["first", "second"]
        assert list(executor.validators_for(Capability.PATH)) == ["first"]
        assert executor.validators_for(Capability.FILTER) == {}

    def test_unused_validators(self) -> None:
        """Validators without capabilities are reported as unused."""
        idle = RecordingValidator()
        executor = ValidationExecutor({"idle": idle, "path": RecordingValidator(Capability.PATH)})

        assert executor.unused_validators() == {"idle": idle}

    def test_done_messages_attributed(self) -> None:
        """Messages from done() carry the validator id."""
        executor = ValidationExecutor({"rec": RecordingValidator(Capability.PATH)})

        violations = executor.validate_archive(_archive())

        assert violations == [ValidationViolation("rec", Severity.INFO, "finished")]


class TestDataStreams:
    """Tests for data stream handling."""

    def test_single_consumer_gets_plain_stream(self) -> None:
        """One interested validator reads the entry without buffering."""
        validator = RecordingValidator(Capability.DATA)
        ValidationExecutor({"data": validator}).validate_archive(_archive())

        assert validator.payloads == [b"alpha", b"beta"]
        assert not any(isinstance(s, ReplayableStream) for s in validator.streams)
        assert all(isinstance(s, zipfile.ZipExtFile) for s in validator.streams)

    def test_multiple_consumers_share_replayable_stream(self) -> None:
        """Several interested validators each read the full bytes."""
        first = RecordingValidator(Capability.DATA)
        second = RecordingValidator(Capability.DATA)
        ValidationExecutor({"first": first, "second": second}).validate_archive(_archive())

        assert first.payloads == [b"alpha", b"beta"]
        assert second.payloads == [b"alpha", b"beta"]
        assert all(isinstance(s, ReplayableStream) for s in first.streams)

    def test_uninterested_validator_skipped(self) -> None:
        """Validators declining an entry are not counted as consumers."""
        reader = RecordingValidator(Capability.DATA)
        bystander = RecordingValidator(Capability.DATA, wants_data=False)
        ValidationExecutor({"reader": reader, "bystander": bystander}).validate_archive(_archive())

        assert bystander.payloads == []
        assert not any(isinstance(s, ReplayableStream) for s in reader.streams)


class TestErrorsOf:
    """Tests for errors_of."""

    def test_threshold(self) -> None:
        """Only violations at or above the threshold are kept."""
        violations = [
            ValidationViolation("v", Severity.WARN, "w"),
            ValidationViolation("v", Severity.ERROR, "e"),
            ValidationViolation("v", Severity.DEBUG, "d"),
        ]

        assert [v.message for v in errors_of(violations)] == ["e"]
        assert [v.message for v in errors_of(violations, Severity.WARN)] == ["w", "e"]

    def test_severity_ordering(self) -> None:
        assert Severity.DEBUG < Severity.INFO < Severity.WARN < Severity.ERROR
