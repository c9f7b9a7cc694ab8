"""
Batch Harness Tests.

Record parsing, every verdict, per-record isolation and the text report.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from lmc_assembler import assemble
from lmc_emulator.harness.batch_harness import (
    BatchHarness, MalformedTestRecord, TestRecord, Verdict,
    parse_test_file, parse_test_record, run_batch, run_test, scan_test_file,
)

PROGRAMS = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "programs")

SUBTRACT = assemble("""
        IN
        STO a
        IN
        STO b
        LDA a
        SUB b
        OUT
        HLT
a       DAT
b       DAT
""")

SPIN = assemble("self    BR self")

SILENT = assemble("HLT")


def _program(name):
    with open(os.path.join(PROGRAMS, name), encoding="utf-8") as f:
        return assemble(f.read())


class TestRecordParsing:

    def test_full_record(self):
        rec = parse_test_record("t1;5,3;002;50")
        assert rec == TestRecord(name="t1", inputs=[5, 3], expected=2, max_cycles=50)

    def test_empty_inputs_and_result(self):
        rec = parse_test_record("t2;;;3")
        assert rec.inputs == []
        assert rec.expected is None
        assert rec.max_cycles == 3

    def test_whitespace_tolerated(self):
        rec = parse_test_record("  t3 ; 1, 2 ; 3 ; 10  ")
        assert rec.name == "t3"
        assert rec.inputs == [1, 2]
        assert rec.expected == 3

    @pytest.mark.parametrize("line", [
        "t1;5,3;002",            # too few fields
        "t1;5,3;002;50;x",       # too many fields
        ";5;2;50",               # empty name
        "t1;5,x;2;50",           # non-numeric input
        "t1;5;1000;50",          # result out of range
        "t1;1000;2;50",          # input out of range
        "t1;5;2;",               # missing max_cycles
        "t1;5;2;-1",             # negative max_cycles
        "t1;5;2;ten",            # non-numeric max_cycles
        "t1;²;;5",               # superscript digit input
        "t1;5;²;5",              # superscript digit result
        "t1;;;²",                # superscript digit max_cycles
    ])
    def test_malformed(self, line):
        with pytest.raises(MalformedTestRecord):
            parse_test_record(line)

    def test_parse_file_skips_comments(self):
        records = parse_test_file("# header\n\nt1;5,3;2;50\n  # indented\nt2;;;3\n")
        assert [r.name for r in records] == ["t1", "t2"]

    def test_parse_file_reports_line(self):
        with pytest.raises(MalformedTestRecord) as exc:
            parse_test_file("t1;5,3;2;50\n\nbad line\n")
        assert exc.value.line_num == 3
        assert str(exc.value).startswith("Line 3:")

    def test_scan_file_keeps_bad_lines_in_order(self):
        entries = scan_test_file("t1;5,3;2;50\n# note\nbroken\nt2;;;3\n")
        assert isinstance(entries[0], TestRecord)
        assert isinstance(entries[1], MalformedTestRecord)
        assert entries[1].line_num == 3
        assert entries[2].name == "t2"


class TestVerdicts:

    def test_pass(self):
        outcome = run_test(SUBTRACT, parse_test_record("t1;5,3;002;50"))
        assert outcome.verdict is Verdict.PASS
        assert outcome.passed
        assert outcome.observed == 2
        assert outcome.outputs == [2]
        assert outcome.cycles == 8

    def test_pass_without_expected_result(self):
        outcome = run_test(SILENT, parse_test_record("halts;;;5"))
        assert outcome.verdict is Verdict.PASS
        assert outcome.observed is None

    def test_result_mismatch(self):
        outcome = run_test(SUBTRACT, parse_test_record("t1;5,3;003;50"))
        assert outcome.verdict is Verdict.RESULT_MISMATCH
        assert outcome.observed == 2
        assert "expected 003, got 002" in outcome.message

    def test_no_output_is_mismatch(self):
        outcome = run_test(SILENT, parse_test_record("quiet;;7;5"))
        assert outcome.verdict is Verdict.RESULT_MISMATCH
        assert outcome.message == "no output produced"

    def test_cycle_budget_exceeded(self):
        outcome = run_test(SPIN, parse_test_record("t2;;;3"))
        assert outcome.verdict is Verdict.CYCLE_BUDGET_EXCEEDED
        assert outcome.cycles == 3

    def test_zero_budget(self):
        outcome = run_test(SILENT, parse_test_record("none;;;0"))
        assert outcome.verdict is Verdict.CYCLE_BUDGET_EXCEEDED
        assert outcome.cycles == 0

    def test_input_underflow_is_execution_error(self):
        outcome = run_test(SUBTRACT, parse_test_record("short;5;2;50"))
        assert outcome.verdict is Verdict.EXECUTION_ERROR
        assert outcome.error_kind == "InputTrayUnderflow"
        assert "mailbox 02" in outcome.message
        assert outcome.cycles == 2

    def test_invalid_opcode_is_execution_error(self):
        outcome = run_test([902, 400], parse_test_record("bad;;;10"))
        assert outcome.verdict is Verdict.EXECUTION_ERROR
        assert outcome.error_kind == "InvalidOpcode"
        assert outcome.outputs == [0]

    def test_oversized_image_is_execution_error(self):
        outcome = run_test([0] * 101, parse_test_record("big;;;10"))
        assert outcome.verdict is Verdict.EXECUTION_ERROR
        assert outcome.error_kind == "ProgramTooLarge"

    def test_negative_result(self):
        outcome = run_test(SUBTRACT, parse_test_record("neg;5,7;998;50"))
        assert outcome.passed

    def test_run_batch_alias(self):
        outcome = run_batch(SUBTRACT, parse_test_record("t1;5,3;002;50"))
        assert outcome.verdict is Verdict.PASS


class TestHarness:

    def test_suite_isolation(self):
        """A failing record leaves no state behind for the next one."""
        harness = BatchHarness(SUBTRACT)
        harness.run_suite(parse_test_file(
            "first;5,3;2;50\n"
            "broken;5;2;50\n"
            "after;9,4;5;50\n"
        ))
        verdicts = [r.verdict for r in harness.results]
        assert verdicts == [Verdict.PASS, Verdict.EXECUTION_ERROR, Verdict.PASS]
        assert not harness.all_passed

    def test_malformed_line_between_good_ones(self):
        """A bad record line is reported on its own and the rest still run."""
        harness = BatchHarness(SUBTRACT)
        outcomes = harness.run_file(
            "good;5,3;002;50\n"
            "bad;5,3;002\n"
            "also_good;9,9;000;50\n"
        )
        assert [o.verdict for o in outcomes] == [
            Verdict.PASS, Verdict.EXECUTION_ERROR, Verdict.PASS]
        assert harness.results == outcomes
        bad = outcomes[1]
        assert bad.name == "bad"
        assert bad.error_kind == "MalformedTestRecord"
        assert bad.message.startswith("Line 2:")
        assert bad.cycles == 0
        assert not harness.all_passed
        assert "MalformedTestRecord: Line 2" in harness.report()
        assert "2/3 passed" in harness.report()

    def test_malformed_line_without_name(self):
        harness = BatchHarness(SUBTRACT)
        outcomes = harness.run_file(";5;2;50\n")
        assert outcomes[0].name == "line 1"
        assert outcomes[0].verdict is Verdict.EXECUTION_ERROR

    def test_order_independent(self):
        records = parse_test_file("a;5,3;2;50\nb;8,1;7;50\nc;1,1;0;50")
        forward = BatchHarness(SUBTRACT).run_suite(records)
        backward = BatchHarness(SUBTRACT).run_suite(list(reversed(records)))
        assert [o.verdict for o in forward] == [o.verdict for o in reversed(backward)]

    def test_program_override(self):
        harness = BatchHarness()
        outcome = harness.run_test(parse_test_record("spin;;;4"), program_image=SPIN)
        assert outcome.verdict is Verdict.CYCLE_BUDGET_EXCEEDED

    def test_no_program(self):
        with pytest.raises(RuntimeError):
            BatchHarness().run_test(parse_test_record("x;;;1"))

    def test_summary(self):
        harness = BatchHarness(SUBTRACT)
        harness.run_suite(parse_test_file("a;5,3;2;50\nb;5,3;9;50\nc;1,1;;1"))
        counts = harness.summary()
        assert counts == {
            'pass': 1,
            'result_mismatch': 1,
            'cycle_budget_exceeded': 1,
            'execution_error': 0,
        }

    def test_report(self):
        harness = BatchHarness(SUBTRACT)
        harness.run_suite(parse_test_file("good;5,3;2;50\nbad;5,3;9;50"))
        report = harness.report()
        assert "PASS  good" in report
        assert "FAIL  bad" in report
        assert "expected 009, got 002" in report
        assert "1/2 passed" in report
        assert "result_mismatch: 1" in report

    def test_report_shows_error_kind(self):
        harness = BatchHarness(SUBTRACT)
        harness.run_suite([parse_test_record("short;;;50")])
        assert "InputTrayUnderflow:" in harness.report()


class TestSampleSuites:

    def test_sub_suite(self):
        with open(os.path.join(PROGRAMS, "sub_tests.txt"), encoding="utf-8") as f:
            records = parse_test_file(f.read())
        harness = BatchHarness(_program("sub.asm"))
        harness.run_suite(records)
        assert harness.all_passed
        assert len(harness.results) == 3

    def test_divide_suite(self):
        with open(os.path.join(PROGRAMS, "divide_tests.txt"), encoding="utf-8") as f:
            records = parse_test_file(f.read())
        harness = BatchHarness(_program("divide.asm"))
        harness.run_suite(records)
        assert harness.all_passed, harness.report()

    def test_divide_by_zero_runs_out_of_budget(self):
        outcome = run_test(_program("divide.asm"), parse_test_record("zero;5,0;;500"))
        assert outcome.verdict is Verdict.CYCLE_BUDGET_EXCEEDED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
