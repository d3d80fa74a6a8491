import sys
from pathlib import Path

from stx_core.protocol import STEP_HEADER_LEN


def main():
    if len(sys.argv) != 2:
        print("Usage: corrupt_one_byte.py <file.stx>")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    b = bytearray(p.read_bytes())
    if len(b) < STEP_HEADER_LEN:
        print("File too small to be a step file.")
        raise SystemExit(2)

    # Flip a byte of the 4-byte file magic so the decoder rejects the file.
    idx = 1
    b[idx] ^= 0x01
    p.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} in {p}")


if __name__ == "__main__":
    main()
