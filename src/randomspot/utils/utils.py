# src/randomspot/utils/utils.py
import json

# ---------------------------- I/O --------------------------------

def write_json(out: str, dictionary: dict, name = ""):
    """
    Writes a dictionary as pretty-printed JSON, or print it to stdout.

    Parameters
    ----------
    out : str
        Output file path. If falsy (e.g., ""), the JSON is printed instead.
    dictionary : dict
        Serializable mapping to store.
    name : str, optional
        Human-readable name used in the success message.
    """
    if out:
        with open(out, "w", encoding="utf-8") as f:
            json.dump(dictionary, f, ensure_ascii=False, indent=2)
        print(f"Wrote {name} JSON to {out}")
    else:
        print(json.dumps(dictionary, ensure_ascii=False, indent=2))

# --------------------- Pretty Strings ----------------------------

def human_int(n: int) -> str:
    """
    Converts an integer into a compact human-readable string.

    Examples
    --------
    10_000_000 -> "10M"
    1_000_000  -> "1M"
    120_000    -> "120k"
    999        -> "999"
    """
    for suffix, factor in (("B", 10**9), ("M", 10**6), ("k", 10**3)):
        if abs(n) >= factor:
            return f"{int(n // factor)}{suffix}"
    return str(n)
