import json
import os

ABI_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "abis")


def read_abi(name: str):
    with open(os.path.join(ABI_DIR, f"{name}.json")) as f:
        return json.load(f)
