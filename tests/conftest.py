from __future__ import annotations

from typing import Any, Dict, List

import pytest

from heatgraph import EventRecorder

FIXED_NOW = "2024-06-30T00:00:00Z"


def _file(path: str, content: str = "", size: int | None = None) -> Dict[str, Any]:
    return {
        "path": path,
        "content": content,
        "size": len(content) if size is None else size,
        "lastModified": 1719532800000,
    }


@pytest.fixture
def sample_files() -> List[Dict[str, Any]]:
    """A small TypeScript repository with nested folders and a README."""
    return [
        _file("src/index.ts", 'import App from "./App";\nimport { helper } from \'./utils/helpers\';\n'),
        _file(
            "src/App.ts",
            'import Header from "./components/Header.tsx";\n'
            'const config = require("../config.js");\n'
            'import React from "react";\n',
        ),
        _file("src/components/Header.tsx", "import { helper } from '../utils/helpers';\n"),
        _file("src/utils/helpers.ts", "export const helper = () => 1;\n"),
        _file("config.js", "module.exports = {};\n"),
        _file("README.md", "import x from './nothing'\n"),
    ]


@pytest.fixture
def sample_commits() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "src/utils/helpers.ts": [
            {"message": "fix null deref", "date": "2024-06-25T10:00:00Z", "authorId": "alice"},
            {"message": "Add helper", "date": "2024-01-10T10:00:00Z", "authorId": "bob"},
            {"message": "resolve issue #4", "date": "2024-06-29T08:00:00Z", "authorId": "alice"},
        ],
        "src/App.ts": [
            {"message": "initial", "date": "2023-03-01T00:00:00Z", "authorId": "carol"},
        ],
    }


@pytest.fixture
def fixed_now() -> str:
    return FIXED_NOW


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
