import tempfile
import unittest
from pathlib import Path

from archbench.domain import InstructionCategory, ParseError
from pipeline.classifier import InstructionClassifier, RuleTable, count_categories

from conftest import CHERI_RULES, RISCV_RULES

ASM_LISTING = """\
\t.text
\t.file\t"buffer_overflow.c"
\t.globl\tmain                            # -- Begin function main
main:                                   # @main
# %bb.0:
\taddi\tsp, sp, -32
\tsd\tra, 24(sp)
\tld\ta0, 16(sp)
\tcsetbounds\tca0, ca0, a1
\tcall\tprintf
.LBB0_1:

\tlw\ta1, 0(a0)                     # load element
\tret
\t.size\tmain, .Lfunc_end0-main
"""

OBJDUMP_LISTING = """\

buffer_overflow:     file format elf64-littleriscv


Disassembly of section .text:

0000000000010074 <main>:
   10074:\t1101                \taddi\tsp,sp,-32
   10076:\tec06                \tsd\tra,24(sp)
   10078:\t00813503          \tld\ta0,8(sp)
   1007c:\t8082                \tret
"""

NO_RAW_OBJDUMP_LISTING = """\
prog:     file format elf64-littleriscv

Disassembly of section .text:

0000000000010074 <main>:
   10074:\tadd\ta0,a0,a1
   10076:\tsd\tra,24(sp)
"""


def _counts(table: RuleTable, path: Path):
    return count_categories(InstructionClassifier(table).classify(path))


class TestInstructionClassifier(unittest.TestCase):
    def setUp(self) -> None:
        self.riscv = RuleTable.from_dict("riscv", RISCV_RULES)
        self.cheri = RuleTable.from_dict("cheri", CHERI_RULES)

    def _write(self, root: Path, name: str, text: str) -> Path:
        p = root / name
        p.write_text(text, encoding="utf-8")
        return p

    def test_compiler_listing_skips_labels_directives_and_comments(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(Path(td), "prog.s", ASM_LISTING)
            records = list(InstructionClassifier(self.riscv).classify(p))

            self.assertEqual(
                ["addi", "sd", "ld", "csetbounds", "call", "lw", "ret"],
                [r.mnemonic for r in records],
            )
            counts = count_categories(records)
            self.assertEqual(2, counts[InstructionCategory.LOAD])
            self.assertEqual(1, counts[InstructionCategory.STORE])
            self.assertEqual(1, counts[InstructionCategory.ARITHMETIC])
            self.assertEqual(0, counts[InstructionCategory.BOUNDS_OP])
            self.assertEqual(3, counts[InstructionCategory.OTHER])

    def test_rule_order_first_match_wins(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(Path(td), "prog_cheri.s", ASM_LISTING)
            counts = _counts(self.cheri, p)

            # csetbounds hits the capability prefix rule, call is caught before it
            self.assertEqual(1, counts[InstructionCategory.BOUNDS_OP])
            self.assertEqual(2, counts[InstructionCategory.OTHER])
            self.assertEqual(InstructionCategory.OTHER, self.cheri.categorize("call"))
            self.assertEqual(InstructionCategory.LOAD, self.cheri.categorize("CLC"))
            self.assertEqual(InstructionCategory.STORE, self.cheri.categorize("csc"))

    def test_objdump_listing(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(Path(td), "prog.dump", OBJDUMP_LISTING)
            records = list(InstructionClassifier(self.riscv).classify(p))

            self.assertEqual(["addi", "sd", "ld", "ret"], [r.mnemonic for r in records])

    def test_objdump_listing_without_raw_encodings(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(Path(td), "prog.dump", NO_RAW_OBJDUMP_LISTING)
            records = list(InstructionClassifier(self.riscv).classify(p))

            self.assertEqual(["add", "sd"], [r.mnemonic for r in records])

    def test_instruction_after_label_on_same_line(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(Path(td), "hand.s", "main: addi\tsp, sp, -16\n.L1:\tld\ta0, 8(sp)\nloop:\n\tret\n")
            records = list(InstructionClassifier(self.riscv).classify(p))

            self.assertEqual(["addi", "ld", "ret"], [r.mnemonic for r in records])

    def test_empty_listing_yields_zero_counts(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(Path(td), "empty.s", "\t.text\n\t.section\t.note.GNU-stack\n")
            self.assertEqual([], list(InstructionClassifier(self.riscv).classify(p)))

            counts = _counts(self.riscv, p)
            self.assertEqual({c: 0 for c in InstructionCategory}, counts)

    def test_listing_is_restartable(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = self._write(Path(td), "prog.s", ASM_LISTING)
            listing = InstructionClassifier(self.riscv).classify(p)

            self.assertEqual(list(listing), list(listing))

    def test_unreadable_listing_raises_parse_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            missing = Path(td) / "missing.s"
            with self.assertRaises(ParseError) as ctx:
                InstructionClassifier(self.riscv).classify(missing)
            self.assertEqual(missing, ctx.exception.path)
            self.assertIsInstance(ctx.exception.cause, OSError)

            # a directory cannot be read as a listing either
            with self.assertRaises(ParseError):
                list(InstructionClassifier(self.riscv).classify(Path(td)))


class TestRuleTableFromDict(unittest.TestCase):
    def test_unknown_category_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RuleTable.from_dict("t", {"rules": [{"category": "jump", "prefix": "j"}]})

    def test_rule_needs_exactly_one_predicate(self) -> None:
        with self.assertRaises(ValueError):
            RuleTable.from_dict("t", {"rules": [{"category": "load", "prefix": "l", "contains": "w"}]})
        with self.assertRaises(ValueError):
            RuleTable.from_dict("t", {"rules": [{"category": "load"}]})

    def test_invalid_regex_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RuleTable.from_dict("t", {"rules": [{"category": "load", "regex": "^l[dw"}]})

    def test_rules_must_be_a_list(self) -> None:
        with self.assertRaises(ValueError):
            RuleTable.from_dict("t", {"rules": {"category": "load", "prefix": "l"}})

    def test_default_category(self) -> None:
        table = RuleTable.from_dict("t", {"default": "arithmetic", "rules": []})
        self.assertEqual(InstructionCategory.ARITHMETIC, table.categorize("anything"))


if __name__ == "__main__":
    unittest.main()
