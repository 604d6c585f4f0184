"""
Brainfuck engine

    >   Move the pointer to the right
    <   Move the pointer to the left
    +   Increment the memory cell at the pointer
    -   Decrement the memory cell at the pointer
    .   Output the cell at the pointer
    ,   Read one byte of input into the cell at the pointer
    [   Jump past the matching ] if the cell at the pointer is 0
    ]   Jump back to the matching [ if the cell at the pointer is nonzero

Every other character is a comment. Comments still take one step each, so
the program counter always indexes the original program text.
"""
from __future__ import annotations

from bfstep.core.session.errors import ExecutionFault
from bfstep.core.session.options import StartOptions
from bfstep.engine.contract import InputProvider, OutputSink

INSTRUCTIONS = "><+-.,[]"
LOOP_INSTRUCTIONS = "[]"


def build_jump_table(code: str) -> tuple[dict[int, int], set[int]]:
    """
    Map each bracket position to its partner.

    Unmatched brackets are returned separately instead of raising; they
    only fault once execution reaches them.
    """
    jump_table: dict[int, int] = {}
    unmatched: set[int] = set()
    stack: list[int] = []

    for i, cmd in enumerate(code):
        if cmd == "[":
            stack.append(i)
        elif cmd == "]":
            if not stack:
                unmatched.add(i)
                continue
            start = stack.pop()
            jump_table[start] = i
            jump_table[i] = start

    unmatched.update(stack)
    return jump_table, unmatched


class BrainfuckEngine:
    """
    Single-stepping Brainfuck interpreter over a fixed, non-wrapping tape.

    A faulting instruction leaves the program counter where it was.
    """

    def __init__(
        self,
        program_text: str,
        options: StartOptions | None = None,
        *,
        output: OutputSink,
        input: InputProvider,
        memory_size: int = 30000,
    ) -> None:
        if memory_size <= 0:
            raise ValueError("memory_size must be > 0")

        self._program_text = program_text
        self.options = options or StartOptions()
        self._output = output
        self._input = input

        self.memory = [0] * memory_size
        self._pointer = 0
        self._program_counter = 0
        self._jump_table, self._unmatched = build_jump_table(program_text)

    @property
    def program_text(self) -> str:
        return self._program_text

    @property
    def program_counter(self) -> int:
        return self._program_counter

    @property
    def reached_end(self) -> bool:
        return self._program_counter >= len(self._program_text)

    @property
    def pointer(self) -> int:
        return self._pointer

    def tape_window(self, start: int, count: int) -> list[int]:
        return self.memory[start:start + count]

    def step(self) -> None:
        if self.reached_end:
            raise ExecutionFault("program already finished")

        pc = self._program_counter
        cmd = self._program_text[pc]

        if cmd in LOOP_INSTRUCTIONS:
            if pc in self._unmatched:
                raise ExecutionFault(f"unmatched '{cmd}' at position {pc}")
            cell = self.memory[self._pointer]
            if (cmd == "[" and cell == 0) or (cmd == "]" and cell != 0):
                pc = self._jump_table[pc]
        elif cmd in INSTRUCTIONS:
            self._apply(cmd)

        self._program_counter = pc + 1

    def execute(self, instruction: str) -> None:
        if instruction in LOOP_INSTRUCTIONS:
            raise ExecutionFault(f"'{instruction}' cannot be executed outside the program")
        if len(instruction) != 1 or instruction not in INSTRUCTIONS:
            raise ExecutionFault(f"unknown instruction {instruction!r}")
        self._apply(instruction)

    def _apply(self, cmd: str) -> None:
        if cmd == ">":
            if self._pointer + 1 >= len(self.memory):
                raise ExecutionFault("tape overflow")
            self._pointer += 1

        elif cmd == "<":
            if self._pointer == 0:
                raise ExecutionFault("tape underflow")
            self._pointer -= 1

        elif cmd == "+":
            self.memory[self._pointer] = (self.memory[self._pointer] + 1) % 256

        elif cmd == "-":
            self.memory[self._pointer] = (self.memory[self._pointer] - 1) % 256

        elif cmd == ".":
            self._output(self.memory[self._pointer])

        elif cmd == ",":
            # InputExhausted is an ExecutionFault; the cell stays untouched
            self.memory[self._pointer] = self._input() % 256


def brainfuck_engine_factory(*, memory_size: int = 30000):
    """
    EngineFactory for SessionController with a fixed tape size.
    """

    def factory(
        program_text: str,
        options: StartOptions,
        *,
        output: OutputSink,
        input: InputProvider,
    ) -> BrainfuckEngine:
        return BrainfuckEngine(
            program_text,
            options,
            output=output,
            input=input,
            memory_size=memory_size,
        )

    return factory
