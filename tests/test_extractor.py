"""
测试 JSON 取值器
"""

import json

import pytest

from metric_agent.errors import PathNotFoundError
from metric_agent.extractor import extract_value


DOCUMENT = {
    "data": {
        "status": {
            "erd_nonce": 123456,
            "erd_epoch_number": 0,
            "synced": True,
            "syncing": False,
            "version": "v1.2.3",
            "ratio": 1.5,
            "peers": ["a", "b"],
            "meta": {"k": "v"},
            "missing": None,
        }
    },
    "big": 18446744073709551615,
}


class TestExtractValue:
    """取值成功的情况"""

    def test_nested_integer(self):
        assert extract_value(DOCUMENT, "data.status.erd_nonce") == "123456"

    def test_zero(self):
        assert extract_value(DOCUMENT, "data.status.erd_epoch_number") == "0"

    def test_booleans(self):
        assert extract_value(DOCUMENT, "data.status.synced") == "true"
        assert extract_value(DOCUMENT, "data.status.syncing") == "false"

    def test_string_verbatim(self):
        assert extract_value(DOCUMENT, "data.status.version") == "v1.2.3"

    def test_float(self):
        assert extract_value(DOCUMENT, "data.status.ratio") == "1.5"

    @pytest.mark.parametrize("raw, expected", [
        ("1.0", "1"),
        ("1e5", "100000"),
        ("2.50", "2.5"),
        ("-0.25", "-0.25"),
        ("1e-7", "0.0000001"),
        ("0.0", "0"),
    ])
    def test_float_rendering(self, raw, expected):
        document = json.loads(f'{{"v": {raw}}}')
        assert extract_value(document, "v") == expected

    def test_uint64_max(self):
        assert extract_value(DOCUMENT, "big") == "18446744073709551615"


class TestNotFound:
    """所有失败原因都表现为同一个 PathNotFoundError"""

    @pytest.mark.parametrize("path", [
        "data.status.unknown",
        "data.other.erd_nonce",
        "data.status.version.major",   # 中间节点是字符串
        "data.status.peers.0",         # 不支持数组下标
        "data.status.peers",           # 终点是数组
        "data.status.meta",            # 终点是对象
        "data.status.missing",         # null
        "",
    ])
    def test_not_found(self, path):
        with pytest.raises(PathNotFoundError):
            extract_value(DOCUMENT, path)

    def test_document_not_object(self):
        with pytest.raises(PathNotFoundError):
            extract_value([1, 2, 3], "data")
