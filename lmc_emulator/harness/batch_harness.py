"""
LMC Emulator — Batch Test Harness

Replays canned inputs against a program image and checks the result.

Test record format (one per line, exactly four ';'-separated fields):

  name;in1,in2,...,inN;result;max_cycles

  name        mandatory
  inputs      comma-separated words 000–999, may be empty
  result      expected final output word, may be empty (halt check only)
  max_cycles  mandatory, instruction budget for the run

  t1;5,3;002;50     → feed 5 then 3, expect last OUT = 2, within 50 cycles
  t2;;;3            → no input, no result check, must halt within 3 cycles

Each record gets a fresh emulator, so one failing record never affects
another and records can be run in any order.

Verdicts:
  pass                    halted, and result matches (or no result given)
  result_mismatch         halted, but last output differs or nothing was output
  cycle_budget_exceeded   max_cycles executed without halting
  execution_error         the engine raised (illegal opcode, empty tray, ...),
                          or the record line itself was malformed
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from ..config import DECIMAL_RE, WORD_MAX
from ..emu import LMCEmulator, StopReason
from ..errors import EmulatorError

log = logging.getLogger('lmc.batch')

FIELD_SEP = ';'
INPUT_SEP = ','
FIELD_COUNT = 4


class MalformedTestRecord(Exception):
    """Raised on a test record that does not follow the four-field format."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


# ══════════════════════════════════════════════
# Records
# ══════════════════════════════════════════════

@dataclass
class TestRecord:
    """One parsed test record."""
    __test__ = False  # not a pytest test class

    name: str
    inputs: List[int] = field(default_factory=list)
    expected: Optional[int] = None
    max_cycles: int = 0


def _parse_word(text: str, what: str, line_num: int, line: str) -> int:
    if not DECIMAL_RE.fullmatch(text):
        raise MalformedTestRecord(f"{what} is not a decimal number: '{text}'", line_num, line)
    value = int(text)
    if value > WORD_MAX:
        raise MalformedTestRecord(f"{what} out of range 000-999: {text}", line_num, line)
    return value


def parse_test_record(line: str, line_num: int = 0) -> TestRecord:
    """Parse 'name;inputs;result;max_cycles' into a TestRecord."""
    fields = [f.strip() for f in line.strip().split(FIELD_SEP)]
    if len(fields) != FIELD_COUNT:
        raise MalformedTestRecord(
            f"expected {FIELD_COUNT} ';'-separated fields, got {len(fields)}", line_num, line)

    name, inputs_text, expected_text, cycles_text = fields

    if not name:
        raise MalformedTestRecord("test name is empty", line_num, line)

    inputs = []
    if inputs_text:
        for token in inputs_text.split(INPUT_SEP):
            inputs.append(_parse_word(token.strip(), "input", line_num, line))

    expected = None
    if expected_text:
        expected = _parse_word(expected_text, "expected result", line_num, line)

    if not cycles_text:
        raise MalformedTestRecord("max_cycles is empty", line_num, line)
    if not DECIMAL_RE.fullmatch(cycles_text):
        raise MalformedTestRecord(
            f"max_cycles is not a non-negative integer: '{cycles_text}'", line_num, line)

    return TestRecord(name=name, inputs=inputs, expected=expected,
                      max_cycles=int(cycles_text))


def scan_test_file(text: str) -> List[Union[TestRecord, MalformedTestRecord]]:
    """Parse every record in a test file, keeping going past bad lines.

    Each record line yields either its TestRecord or the MalformedTestRecord
    it raised, in file order. Blank lines and '#' lines are skipped.
    """
    entries: List[Union[TestRecord, MalformedTestRecord]] = []
    for line_num, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        try:
            entries.append(parse_test_record(stripped, line_num))
        except MalformedTestRecord as e:
            entries.append(e)
    return entries


def parse_test_file(text: str) -> List[TestRecord]:
    """Parse every record in a test file. Raises on the first malformed line."""
    records = []
    for entry in scan_test_file(text):
        if isinstance(entry, MalformedTestRecord):
            raise entry
        records.append(entry)
    return records


# ══════════════════════════════════════════════
# Outcomes
# ══════════════════════════════════════════════

class Verdict(Enum):
    PASS = 'pass'
    RESULT_MISMATCH = 'result_mismatch'
    CYCLE_BUDGET_EXCEEDED = 'cycle_budget_exceeded'
    EXECUTION_ERROR = 'execution_error'


@dataclass
class TestOutcome:
    """Result of running one TestRecord."""
    __test__ = False

    name: str
    verdict: Verdict
    expected: Optional[int] = None
    observed: Optional[int] = None      # last output word, None if nothing written
    outputs: List[int] = field(default_factory=list)
    cycles: int = 0
    error_kind: Optional[str] = None    # EmulatorError subclass name
    message: str = ""

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASS


def _classify(record: TestRecord, emu: LMCEmulator, reason: StopReason,
              cycles: int) -> TestOutcome:
    outcome = TestOutcome(
        name=record.name,
        verdict=Verdict.PASS,
        expected=record.expected,
        observed=emu.output_tray.last,
        outputs=emu.outputs,
        cycles=cycles,
    )

    if reason is StopReason.TIMEOUT:
        outcome.verdict = Verdict.CYCLE_BUDGET_EXCEEDED
        outcome.message = f"no halt within {record.max_cycles} cycles"
        return outcome

    if record.expected is None:
        outcome.message = "halted"
        return outcome

    if outcome.observed is None:
        outcome.verdict = Verdict.RESULT_MISMATCH
        outcome.message = "no output produced"
    elif outcome.observed != record.expected:
        outcome.verdict = Verdict.RESULT_MISMATCH
        outcome.message = f"expected {record.expected:03d}, got {outcome.observed:03d}"
    else:
        outcome.message = f"output {outcome.observed:03d}"
    return outcome


def run_test(program_image: Iterable[int], record: TestRecord) -> TestOutcome:
    """Run one record against a program image on a fresh emulator."""
    emu = LMCEmulator()
    try:
        emu.load_program(program_image)
        emu.inject_input(record.inputs)
        result = emu.run(max_cycles=record.max_cycles)
    except EmulatorError as e:
        return TestOutcome(
            name=record.name,
            verdict=Verdict.EXECUTION_ERROR,
            expected=record.expected,
            observed=emu.output_tray.last,
            outputs=emu.outputs,
            cycles=emu.regs.cycles,
            error_kind=e.kind,
            message=str(e),
        )
    return _classify(record, emu, result.stop_reason, result.cycles)


def malformed_outcome(error: MalformedTestRecord) -> TestOutcome:
    """Outcome for a record line that never parsed; nothing was run."""
    name = error.line_text.split(FIELD_SEP, 1)[0].strip()
    if not name:
        name = f"line {error.line_num}"
    return TestOutcome(
        name=name,
        verdict=Verdict.EXECUTION_ERROR,
        error_kind=type(error).__name__,
        message=str(error),
    )


# One record against one image, under the name external callers use
run_batch = run_test


# ══════════════════════════════════════════════
# Harness
# ══════════════════════════════════════════════

class BatchHarness:
    """Runs test records against one program and keeps every outcome.

    Usage:
        harness = BatchHarness(image)
        harness.run_file(text)
        print(harness.report())
        ok = harness.all_passed
    """

    def __init__(self, program_image: Optional[Iterable[int]] = None):
        self.program_image = list(program_image) if program_image is not None else None
        self.results: List[TestOutcome] = []

    def run_test(self, record: TestRecord,
                 program_image: Optional[Iterable[int]] = None) -> TestOutcome:
        """Run one record; program_image overrides the harness image."""
        image = list(program_image) if program_image is not None else self.program_image
        if image is None:
            raise RuntimeError("No program image attached")

        outcome = run_test(image, record)
        self.results.append(outcome)
        log.info("%s: %s (%s)", record.name, outcome.verdict.value, outcome.message)
        return outcome

    def run_suite(self, records: Iterable[TestRecord],
                  program_image: Optional[Iterable[int]] = None) -> List[TestOutcome]:
        """Run every record independently, in order."""
        return [self.run_test(record, program_image) for record in records]

    def run_file(self, text: str,
                 program_image: Optional[Iterable[int]] = None) -> List[TestOutcome]:
        """Run every record in a test file.

        A malformed line is recorded as an execution_error outcome with
        error_kind 'MalformedTestRecord' and the remaining lines still run.
        """
        outcomes = []
        for entry in scan_test_file(text):
            if isinstance(entry, MalformedTestRecord):
                outcome = malformed_outcome(entry)
                self.results.append(outcome)
                log.warning("%s: %s", outcome.name, outcome.message)
            else:
                outcome = self.run_test(entry, program_image)
            outcomes.append(outcome)
        return outcomes

    def summary(self) -> Dict[str, int]:
        """Count outcomes per verdict."""
        counts = {verdict.value: 0 for verdict in Verdict}
        for outcome in self.results:
            counts[outcome.verdict.value] += 1
        return counts

    @property
    def all_passed(self) -> bool:
        return all(outcome.passed for outcome in self.results)

    def report(self) -> str:
        """Generate test results summary."""
        lines = ["═" * 60]
        lines.append("  LMC Batch Test Results")
        lines.append("═" * 60)

        for r in self.results:
            status = 'PASS' if r.passed else 'FAIL'
            lines.append(f"  {status}  {r.name:<20s} {r.verdict.value:<22s} {r.cycles:>6d} cycles")
            if not r.passed:
                detail = r.message
                if r.error_kind:
                    detail = f"{r.error_kind}: {detail}"
                lines.append(f"        {detail}")

        counts = self.summary()
        passed = counts[Verdict.PASS.value]
        lines.append("─" * 60)
        lines.append(f"  {passed}/{len(self.results)} passed")
        for verdict, count in counts.items():
            if verdict != Verdict.PASS.value and count:
                lines.append(f"    {verdict}: {count}")
        lines.append("═" * 60)
        return '\n'.join(lines)
