"""Tests for platform detection."""

import pytest

from plz import platform as plz_platform


class TestPlatform:
    @pytest.mark.parametrize(
        "sys_platform, expected",
        [("linux", "linux"), ("darwin", "macos"), ("win32", "windows"), ("freebsd13", "linux")],
    )
    def test_current_platform(self, monkeypatch, sys_platform, expected):
        """Test sys.platform values map to plz platform names."""
        monkeypatch.setattr(plz_platform.sys, "platform", sys_platform)
        assert plz_platform.current_platform() == expected

    def test_is_current_platform(self):
        """Test membership against an explicit platform."""
        assert plz_platform.is_current_platform(["linux", "macos"], current="macos")
        assert not plz_platform.is_current_platform(["windows"], current="linux")
