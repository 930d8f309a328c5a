"""
Opcode decoding.

`fields()` slices a 16-bit word into its operand fields and never fails.
`decode()` additionally classifies the word into one of the 35 `Op` tags
and raises `UnknownOpcodeError` for words outside the instruction set.
"""

from enum import Enum
from typing import NamedTuple

from .errors import UnknownOpcodeError


class Op(Enum):
    SYS = "SYS addr"
    CLS = "CLS"
    RET = "RET"
    JP = "JP addr"
    CALL = "CALL addr"
    SE_BYTE = "SE Vx, byte"
    SNE_BYTE = "SNE Vx, byte"
    SE_REG = "SE Vx, Vy"
    LD_BYTE = "LD Vx, byte"
    ADD_BYTE = "ADD Vx, byte"
    LD_REG = "LD Vx, Vy"
    OR = "OR Vx, Vy"
    AND = "AND Vx, Vy"
    XOR = "XOR Vx, Vy"
    ADD_REG = "ADD Vx, Vy"
    SUB = "SUB Vx, Vy"
    SHR = "SHR Vx"
    SUBN = "SUBN Vx, Vy"
    SHL = "SHL Vx"
    SNE_REG = "SNE Vx, Vy"
    LD_I = "LD I, addr"
    JP_V0 = "JP V0, addr"
    RND = "RND Vx, byte"
    DRW = "DRW Vx, Vy, nibble"
    SKP = "SKP Vx"
    SKNP = "SKNP Vx"
    LD_VX_DT = "LD Vx, DT"
    LD_VX_K = "LD Vx, K"
    LD_DT_VX = "LD DT, Vx"
    LD_ST_VX = "LD ST, Vx"
    ADD_I = "ADD I, Vx"
    LD_F = "LD F, Vx"
    LD_B = "LD B, Vx"
    LD_MEM_VX = "LD [I], Vx"
    LD_VX_MEM = "LD Vx, [I]"


class Fields(NamedTuple):
    """Operand fields of an instruction word"""
    word: int
    op: int     # high nibble, the operation family
    x: int
    y: int
    n: int
    kk: int
    nnn: int


class Instruction(NamedTuple):
    op: Op
    fields: Fields

    @property
    def word(self) -> int:
        return self.fields.word


def fields(word: int) -> Fields:
    """Extract the fixed-width fields of a 16-bit instruction word"""
    word &= 0xFFFF
    return Fields(
        word=word,
        op=(word >> 12) & 0xF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0x000F,
        kk=word & 0x00FF,
        nnn=word & 0x0FFF,
    )


# Families whose tag depends only on the high nibble
_FAMILY = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

# 8xyN, keyed on N
_ALU = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

# ExKK, keyed on KK
_KEYS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

# FxKK, keyed on KK
_MISC = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}


def classify(f: Fields):
    """Return the `Op` for decoded fields, or None if the word is not an instruction"""
    if f.op in _FAMILY:
        return _FAMILY[f.op]
    if f.op == 0x0:
        if f.word == 0x00E0:
            return Op.CLS
        if f.word == 0x00EE:
            return Op.RET
        return Op.SYS
    if f.op == 0x5:
        return Op.SE_REG if f.n == 0 else None
    if f.op == 0x9:
        return Op.SNE_REG if f.n == 0 else None
    if f.op == 0x8:
        return _ALU.get(f.n)
    if f.op == 0xE:
        return _KEYS.get(f.kk)
    return _MISC.get(f.kk)


def decode(word: int) -> Instruction:
    """Decode a word into a tagged instruction, raising on unknown opcodes"""
    f = fields(word)
    op = classify(f)
    if op is None:
        raise UnknownOpcodeError(f.word)
    return Instruction(op, f)
