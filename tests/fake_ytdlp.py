"""Stand-in for yt-dlp used by the test suite.

The source URL decides the behaviour: ``fail`` exits nonzero, ``hang`` never
finishes, ``sleepy`` writes its output after a second, ``nofile`` exits
cleanly without writing output and ``malformed`` prints invalid JSON in
metadata mode.
"""

import json
import sys
import time
from pathlib import Path


def main(argv):
    url = argv[argv.index("--") + 1] if "--" in argv else argv[-1]

    if "hang" in url:
        time.sleep(60)
        return 0
    if "fail" in url:
        sys.stderr.write("ERROR: Video unavailable\n")
        return 1

    if "-j" in argv:
        if "malformed" in url:
            print("this is not json")
            return 0
        print(
            json.dumps(
                {
                    "id": "dQw4w9WgXcQ",
                    "title": "Sample Track",
                    "duration": 212,
                    "uploader": "Sample Uploader",
                    "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
                }
            )
        )
        return 0

    if "nofile" in url:
        return 0
    if "slow" in url:
        time.sleep(0.3)
    if "sleepy" in url:
        time.sleep(1.0)

    template = argv[argv.index("-o") + 1]
    audio_format = argv[argv.index("--audio-format") + 1]
    output = Path(template.replace("%(ext)s", audio_format))
    output.write_bytes(b"ID3" + url.encode("utf-8"))
    print(f"[ExtractAudio] Destination: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
