"""CPU core: ALU operations and the integer register file."""
