from .instruction import decode_instruction, encode_instruction, expected_length

__all__ = ["decode_instruction", "encode_instruction", "expected_length"]
