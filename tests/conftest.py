import os
from pathlib import Path

import pytest


SAMPLE_SCRIPT = """---
scriptId: "fire-hit-v2"
title: "10分钟火焰命中特效v2"
author: "VFX Team"
videoProgress: "50%"
audioProgress: "25%"
exportDate: "2024-01-01T00:00:00.000Z"
---

# 10分钟火焰命中特效v2

## Intro

<!-- TABLE_START -->
| 录视频 | 配音 | 时间轴 | 画面内容 | 旁白/对话 | 备注 |
| :---: | :---: | --- | --- | --- | --- |
| ✓ |   | <!-- id:t1 video:checked audio:unchecked -->0:15 | **Logo** reveal | Welcome back | keep it short |
|   |   | 0:30 | Title card | Today we build<br>a fire hit |  |
<!-- TABLE_END -->

## The Core

### Chapter 1

<!-- TABLE_START -->
| 录视频 | 配音 | 时间轴 | 画面内容 | 旁白/对话 | 视觉引导/备注 |
| :---: | :---: | --- | --- | --- | --- |
| ✓ | ✓ | <!-- id:t3 video:checked audio:checked -->1:00 | Niagara \\| emitter | Open the emitter |  |
<!-- TABLE_END -->
"""


@pytest.fixture(autouse=True)
def ensure_valid_cwd():
    try:
        os.getcwd()
    except FileNotFoundError:
        os.chdir(Path(__file__).resolve().parents[1])
    yield


@pytest.fixture(autouse=True)
def isolate_config(tmp_path):
    """Point SCRIPTBOARD_CONFIG at a temp file so tests never read ~/.scriptboard."""
    config_path = tmp_path / "scriptboard_config" / "config.toml"

    old_value = os.environ.get('SCRIPTBOARD_CONFIG')
    os.environ['SCRIPTBOARD_CONFIG'] = str(config_path)

    yield config_path

    if old_value is not None:
        os.environ['SCRIPTBOARD_CONFIG'] = old_value
    else:
        os.environ.pop('SCRIPTBOARD_CONFIG', None)


@pytest.fixture
def sample_script():
    return SAMPLE_SCRIPT


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "lesson.md"
    path.write_text(SAMPLE_SCRIPT, encoding="utf-8")
    return path
