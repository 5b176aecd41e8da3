"""Tests for the command-line entry points and live-window input handling."""

import pygame
import pytest

from pulsefield.app import LiveApp
from pulsefield.cli import _progress_bar, main, render_main
from pulsefield.config import EngineConfig
from pulsefield.io.encoder import ffmpeg_available
from pulsefield.io.sources import FileSpectrumSource, SignalSpectrumSource
from pulsefield.scheduler import PointerDown, PointerMove, Resize, Scheduler


class TestCli:
    def test_live_needs_input(self):
        with pytest.raises(SystemExit):
            main([])

    def test_live_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.wav")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_render_missing_file(self, tmp_path, capsys):
        assert render_main([str(tmp_path / "missing.wav")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_render_undecodable_file(self, tmp_path, capsys):
        bogus = tmp_path / "song.wav"
        bogus.write_text("this is not audio")
        assert render_main([str(bogus), "-q", "fast"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_live_undecodable_file(self, tmp_path, capsys):
        bogus = tmp_path / "song.wav"
        bogus.write_text("this is not audio")
        assert main([str(bogus)]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_render_invalid_canvas(self, temp_audio_file, capsys):
        assert render_main([str(temp_audio_file), "--width", "0"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_bad_accent_rejected(self, temp_audio_file):
        with pytest.raises(SystemExit):
            render_main([str(temp_audio_file), "--accent", "teal"])

    def test_bad_mode_rejected(self, temp_audio_file):
        with pytest.raises(SystemExit):
            render_main([str(temp_audio_file), "--mode", "fractal"])

    def test_progress_bar_finishes(self, capsys):
        for i in range(1, 21):
            _progress_bar(i, 20)
        assert "100.0%" in capsys.readouterr().out

    @pytest.mark.skipif(not ffmpeg_available(), reason="ffmpeg not installed")
    def test_render_default_output(self, temp_audio_file):
        code = render_main([
            str(temp_audio_file),
            "-p", "low", "--width", "160", "--height", "120", "--fps", "10",
            "-q", "fast", "--max-duration", "0.5", "--seed", "1",
        ])
        assert code == 0
        assert temp_audio_file.with_name("test_audio_pulsefield.mp4").exists()


class TestLiveAppInput:
    @pytest.fixture
    def app(self, pure_sine):
        y, sr = pure_sine
        scheduler = Scheduler(EngineConfig(width=160, height=120))
        return LiveApp(scheduler, SignalSpectrumSource(y, sr))

    def test_quit(self, app):
        assert not app._handle(pygame.event.Event(pygame.QUIT))
        assert not app._handle(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE))

    def test_overlay_toggle(self, app):
        assert app._handle(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_h))
        assert app.show_overlay
        app._handle(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_h))
        assert not app.show_overlay

    def test_sensitivity_keys(self, app):
        app._handle(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_UP))
        assert app.scheduler.sensitivity == 6.0
        for _ in range(10):
            app._handle(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_DOWN))
        assert app.scheduler.sensitivity == 0.0

    def test_pointer_and_resize_become_events(self, app):
        app._handle(pygame.event.Event(pygame.MOUSEMOTION, pos=(10, 20)))
        app._handle(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(30, 40), button=1))
        app._handle(pygame.event.Event(pygame.VIDEORESIZE, w=320, h=240, size=(320, 240)))
        assert list(app.scheduler.events) == [
            PointerMove(10, 20),
            PointerDown(30, 40),
            Resize(320, 240),
        ]

    def test_scroll_wheel_does_not_burst(self, app):
        app._handle(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(30, 40), button=4))
        app._handle(pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=(30, 40), button=5))
        assert not app.scheduler.events

    def test_playback_reopens_mixer_at_file_rate(self, temp_audio_file, sample_rate, monkeypatch):
        calls = []
        monkeypatch.setattr(pygame.mixer, "quit", lambda: calls.append("quit"))
        monkeypatch.setattr(pygame.mixer, "init", lambda **kw: calls.append(("init", kw)))
        monkeypatch.setattr(pygame.mixer.music, "load", lambda path: calls.append("load"))
        monkeypatch.setattr(pygame.mixer.music, "play", lambda: calls.append("play"))

        source = FileSpectrumSource.from_path(temp_audio_file)
        app = LiveApp(Scheduler(EngineConfig(width=160, height=120)), source)
        app._start_playback()

        assert calls == ["quit", ("init", {"frequency": sample_rate}), "load", "play"]
        assert source.clock is not None
