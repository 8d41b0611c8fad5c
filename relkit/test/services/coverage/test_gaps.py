from __future__ import annotations

import pytest

from relkit.services.coverage.gaps import FALLBACK_REASON, classify_gap


@pytest.mark.parametrize(
    ("line", "addressable", "reason"),
    [
        ("defer f.Close()", False, "deferred close"),
        ('if err := os.MkdirAll(dir, 0o755); err != nil {', False, "OS call error path"),
        ("resp, err := http.Get(url)", False, "network call error path"),
        ('out, err := exec.Command("git", "status").Output()', False, "subprocess error path"),
        ('panic("unreachable")', False, "panic path"),
        ("data, err := json.MarshalIndent(v, \"\", \"  \")", False, "encoding error path"),
        ("if err != nil {", True, "error handling"),
        ('return fmt.Errorf("load: %w", err)', True, "error return"),
        ('case "darwin":', True, "switch case"),
        ("default:", True, "switch case"),
        ("} else {", True, "else branch"),
        ("} else if n > 3 {", True, "else branch"),
        ("total += n", True, FALLBACK_REASON),
        ("", True, FALLBACK_REASON),
    ],
)
def test_classify_gap(line: str, addressable: bool, reason: str) -> None:
    assert classify_gap(line) == (addressable, reason)
