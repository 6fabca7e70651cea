"""Backend launcher: ``python -m talkmate.run``."""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "talkmate.main:app",
        host=os.environ.get("TALKMATE_HOST", "127.0.0.1"),
        port=int(os.environ.get("TALKMATE_PORT", "8765")),
    )
