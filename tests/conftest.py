"""Test configuration ensuring the project package is importable."""

from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

ROOT = Path(__file__).resolve().parent.parent
FIXTURES = Path(__file__).resolve().parent / "fixtures"

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)
else:
    idx = sys.path.index(root_str)
    if idx != 0:
        sys.path.insert(0, sys.path.pop(idx))

# Import the project package eagerly so subsequent imports reuse it
importlib.import_module("js_challenge")


# A payload in the generator's shape with a four entry pool.  After one
# rotation the pool reads ["12abc", "40xyz", "sqrt", "keys"], which makes the
# check expression 12/1 + 40/2 equal the target 32.
POOL_CHALLENGE = """function(a){
  function g(n, k) {
    var p = q();
    return g = function (i, j) { i = i - (50 * 2); var s = p[i]; return s; }, g(n, k);
  }
  var early = g(100);
  (function (get, want) {
    for (var acc = g, pool = get(); [];) try {
      var v = parseInt(acc(100)) / 1 + parseInt(acc(101)) / 2;
      if (v === want) break;
      pool.push(pool.shift());
    } catch {
      pool.push(pool.shift());
    }
  })(q, -8 + 40);
  var late = g(100);
  function q() {
    var list = ["keys", "12abc", "40xyz", "sqrt"];
    return q = function () { return list; }, q();
  }
  return function () {
    var h = g;
    return [a * Math[h(102)](a), Object[h(103)](globalThis["process"] || {}), globalThis.marker];
  }();
}"""


@pytest.fixture
def captured_challenge() -> Dict[str, Any]:
    """Challenge captured from the protected site, decoded from its base64 envelope."""

    return json.loads((FIXTURES / "captured_challenge.json").read_text(encoding="utf-8"))


@pytest.fixture
def captured_response() -> str:
    """Response the browser produced for :func:`captured_challenge`."""

    return (FIXTURES / "captured_response.json").read_text(encoding="utf-8").strip()


@pytest.fixture
def pool_challenge() -> str:
    return POOL_CHALLENGE
