import struct

from pymdat.words import WORD_FORMAT, WORD_SIZE


def make_hex_dump(data, chunk_size=8, title=None, start_offset=0):
    """
    Create a formatted hexdump of binary mdat data.

    Each line shows the raw bytes, the same bytes read as host-order 16-bit
    words, and the printable characters.

    Args:
        data: Binary data to dump
        chunk_size: Number of bytes per line (even)
        title: Optional title to display before the hex dump
        start_offset: File offset of the first byte, used for the offset column

    Returns:
        String containing formatted hexdump
    """
    dump = []

    if title:
        dump.append(f"--- {title} ---")

    words_width = (chunk_size // WORD_SIZE) * 5
    header = "   {:<6}    {:<{}} {:<{}} {}".format("line", "bytes", chunk_size*3, "words", words_width, "text")
    dump.append(header)
    dump.append("-"*len(header))
    for i in range(0, len(data), chunk_size):
        chunk = data[i:i+chunk_size]
        hex_part = ' '.join(f"{b:02x}" for b in chunk)
        words = [struct.unpack(WORD_FORMAT, chunk[j:j+WORD_SIZE])[0]
                 for j in range(0, len(chunk) - 1, WORD_SIZE)]
        word_part = ' '.join(f"{w:04x}" for w in words)
        ascii_str = ''.join(chr(b) if 32 <= b < 127 else '.' for b in chunk)
        line_num = i // chunk_size
        line = f"{line_num:>4}[{start_offset + i:06x}]   {hex_part:<{chunk_size*3}} {word_part:<{words_width}} {ascii_str}"
        dump.append(line)
    return '\n'.join(dump)
