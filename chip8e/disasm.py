"""
CHIP-8 disassembler.

Turns instruction words into mnemonics for the debug trace and for the
`--disassemble` listing. Unknown words render as `??? $XXXX` rather than
raising, since ROM images interleave code with sprite data.
"""

from typing import Iterator

from .constants import PROGRAM_START
from .decoder import Op, classify, fields

# Mnemonic templates, filled from the decoded fields
_TEMPLATES = {
    Op.SYS: "SYS ${nnn:03X}",
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.JP: "JP ${nnn:03X}",
    Op.CALL: "CALL ${nnn:03X}",
    Op.SE_BYTE: "SE V{x:X}, ${kk:02X}",
    Op.SNE_BYTE: "SNE V{x:X}, ${kk:02X}",
    Op.SE_REG: "SE V{x:X}, V{y:X}",
    Op.LD_BYTE: "LD V{x:X}, ${kk:02X}",
    Op.ADD_BYTE: "ADD V{x:X}, ${kk:02X}",
    Op.LD_REG: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_REG: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}",
    Op.SNE_REG: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, ${nnn:03X}",
    Op.JP_V0: "JP V0, ${nnn:03X}",
    Op.RND: "RND V{x:X}, ${kk:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_VX_K: "LD V{x:X}, K",
    Op.LD_DT_VX: "LD DT, V{x:X}",
    Op.LD_ST_VX: "LD ST, V{x:X}",
    Op.ADD_I: "ADD I, V{x:X}",
    Op.LD_F: "LD F, V{x:X}",
    Op.LD_B: "LD B, V{x:X}",
    Op.LD_MEM_VX: "LD [I], V{x:X}",
    Op.LD_VX_MEM: "LD V{x:X}, [I]",
}


def disassemble(word: int) -> str:
    """Return the mnemonic for a single 16-bit opcode"""
    f = fields(word)
    op = classify(f)
    if op is None:
        return f"??? ${f.word:04X}"
    return _TEMPLATES[op].format(**f._asdict())


def disassemble_rom(data: bytes, start_addr: int = PROGRAM_START) -> Iterator[str]:
    """
    Yield one listing line per instruction word in `data`.

    Each line reads "ADDR:  WORD  MNEMONIC"; an odd trailing byte is
    shown as data.
    """
    addr = start_addr
    for i in range(0, len(data) - 1, 2):
        word = (data[i] << 8) | data[i + 1]
        yield f"{addr:04X}:  {word:04X}  {disassemble(word)}"
        addr += 2
    if len(data) % 2:
        yield f"{addr:04X}:  .byte 0x{data[-1]:02X}  (odd trailing byte)"
