"""
CLI: run a headless detection session -> JSON.
"""
from __future__ import annotations
import argparse, json, logging, os, sys
from core.config import Settings
from core.live import run_headless

def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--seconds", type=float, default=10.0, help="How long to detect")
    p.add_argument("--camera", type=int, default=None, help="Camera index (default: CAMERA_INDEX)")
    p.add_argument("--out", default="output/session.json", help="Path to output JSON")
    args = p.parse_args(argv)

    overrides = {} if args.camera is None else {"CAMERA_INDEX": args.camera}
    settings = Settings(**overrides)
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    try:
        view = run_headless(settings, args.seconds)
    except RuntimeError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    result = view.model_dump(mode="json")
    print(json.dumps(result, indent=2, ensure_ascii=False))

    # Also write to file
    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, ensure_ascii=False)
    print(f"✅ Session written to {args.out}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
