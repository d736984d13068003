"""Pygame shell for the assistive micro-simulations.

Modules reachable from the main menu:
- Autism: visual schedule, transition timer, AAC cards, 4-4-6 breathing,
  situations quiz and low-stim settings
- Movement: "we fix up the school" placement game and reflection questions
- Vision / Hearing / Dyslexia / Emotions: placeholder pages

Deterministic timing/scoring/state lives in assistive_sim/* (engine modules);
this file only maps input to engine operations and draws snapshots.
"""

from __future__ import annotations

import importlib.util
import logging
import math
import os
import shutil
import subprocess
import sys
import time
from array import array
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .aac import AacBoard
from .breathing import BreathingCycle, BreathPhase, PHASE_DURATIONS_S, PHASE_LABELS
from .clock import RealClock, Scheduler
from .countdown import PRESET_MINUTES, CountdownTimer
from .cues import CueBoard
from .placement import BADGE_TEXT, BadgeTier, PlacementPuzzle
from .quiz import QuizEngine
from .schedule import VisualSchedule, minutes_from_time
from .settings import Reflection, ReflectionRepository, SettingsRepository
from .store import KeyValueStore, MemoryStore, SqliteStore, default_db_path

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

DISABLE_TTS_ENV = "ASSISTIVE_DISABLE_TTS"
TTS_BACKEND_ENV = "ASSISTIVE_TTS_BACKEND"


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


@dataclass(frozen=True, slots=True)
class Palette:
    bg: tuple[int, int, int]
    panel: tuple[int, int, int]
    border: tuple[int, int, int]
    text: tuple[int, int, int]
    muted: tuple[int, int, int]
    active_bg: tuple[int, int, int]
    active_text: tuple[int, int, int]
    good: tuple[int, int, int]
    bad: tuple[int, int, int]


CALM_PALETTE = Palette(
    bg=(3, 9, 78),
    panel=(8, 18, 104),
    border=(226, 236, 255),
    text=(238, 245, 255),
    muted=(186, 200, 224),
    active_bg=(244, 248, 255),
    active_text=(14, 26, 74),
    good=(120, 214, 150),
    bad=(240, 138, 128),
)
HIGH_CONTRAST_PALETTE = Palette(
    bg=(0, 0, 0),
    panel=(0, 0, 0),
    border=(255, 255, 255),
    text=(255, 255, 255),
    muted=(255, 255, 0),
    active_bg=(255, 255, 0),
    active_text=(0, 0, 0),
    good=(0, 255, 0),
    bad=(255, 64, 64),
)


class _OfflineTtsSpeaker:
    """Best-effort offline TTS via isolated subprocesses.

    Utterances are queued and launched one at a time from update(), so the
    frame loop never blocks on speech.
    """

    _max_utterance_s = 8.0
    _language = "hr"

    def __init__(self) -> None:
        self._enabled = False
        self._backends: list[str] = []
        self._backend: str | None = None
        self._pending: list[str] = []
        self._active_proc: subprocess.Popen[bytes] | None = None
        self._active_started_s = 0.0

        if os.environ.get(DISABLE_TTS_ENV, "0") == "1":
            return
        if os.environ.get("SDL_AUDIODRIVER", "").strip().lower() == "dummy":
            # Keep automated/headless runs silent.
            return

        self._backends = self._resolve_backends()
        self._backend = self._backends[0] if self._backends else None
        self._enabled = self._backend is not None
        logger.info("speech backend: %s", self._backend or "none")

    @property
    def enabled(self) -> bool:
        return bool(self._enabled)

    def speak(self, text: str) -> None:
        if not self._enabled:
            return
        phrase = " ".join(str(text).strip().split())
        if phrase == "":
            return
        # A new phrase supersedes anything not yet spoken.
        self._pending = [phrase]

    def update(self) -> None:
        if not self._enabled:
            return

        proc = self._active_proc
        if proc is not None:
            if proc.poll() is None:
                if (time.monotonic() - self._active_started_s) > self._max_utterance_s:
                    self._terminate_process(proc)
                    self._active_proc = None
            else:
                self._active_proc = None

        if self._active_proc is not None or not self._pending:
            return

        while self._pending and self._enabled:
            launched = self._launch_process(self._pending[0])
            if launched is not None:
                del self._pending[0]
                self._active_proc = launched
                self._active_started_s = time.monotonic()
                return
            self._drop_current_backend()

        if not self._enabled:
            self._pending.clear()

    def stop(self) -> None:
        self._pending.clear()
        proc = self._active_proc
        self._active_proc = None
        if proc is not None:
            self._terminate_process(proc)

    @staticmethod
    def _terminate_process(proc: subprocess.Popen[bytes]) -> None:
        try:
            proc.terminate()
        except OSError:
            return
        try:
            proc.wait(timeout=0.5)
        except subprocess.TimeoutExpired:
            try:
                proc.kill()
            except OSError:
                pass

    @staticmethod
    def _resolve_backends() -> list[str]:
        supported = ("pyttsx3-subprocess", "say", "powershell", "espeak")
        forced = os.environ.get(TTS_BACKEND_ENV, "").strip().lower()
        if forced in supported and _OfflineTtsSpeaker._backend_available(forced):
            return [forced]

        candidates: list[str] = []
        if sys.platform == "darwin":
            candidates.append("say")
        if os.name == "nt":
            candidates.append("powershell")
        candidates.extend(("espeak", "pyttsx3-subprocess"))
        return [name for name in dict.fromkeys(candidates) if _OfflineTtsSpeaker._backend_available(name)]

    @staticmethod
    def _backend_available(name: str) -> bool:
        if name == "say":
            return shutil.which("say") is not None
        if name == "powershell":
            return (shutil.which("powershell") is not None) or (shutil.which("pwsh") is not None)
        if name == "pyttsx3-subprocess":
            return importlib.util.find_spec("pyttsx3") is not None
        if name == "espeak":
            return shutil.which("espeak") is not None
        return False

    def _drop_current_backend(self) -> None:
        backend = self._backend
        logger.info("speech backend %s failed; dropping it", backend)
        self._backends = [name for name in self._backends if name != backend]
        self._backend = self._backends[0] if self._backends else None
        self._enabled = self._backend is not None

    def _launch_process(self, text: str) -> subprocess.Popen[bytes] | None:
        backend = self._backend
        if backend is None:
            return None

        if backend == "pyttsx3-subprocess":
            script = (
                "import sys\n"
                "txt=' '.join(sys.argv[1:]).strip()\n"
                "import pyttsx3\n"
                "e=pyttsx3.init()\n"
                "e.setProperty('rate', 150)\n"
                "e.say(txt)\n"
                "e.runAndWait()\n"
            )
            argv = [sys.executable, "-c", script, text]
        elif backend == "say":
            argv = [shutil.which("say") or "say", "-r", "150", text]
        elif backend == "powershell":
            ps_bin = shutil.which("powershell") or shutil.which("pwsh")
            if ps_bin is None:
                return None
            script = (
                "Add-Type -AssemblyName System.Speech; "
                "$s=New-Object System.Speech.Synthesis.SpeechSynthesizer; "
                "$s.Speak(($args -join ' '));"
            )
            argv = [ps_bin, "-NoProfile", "-NonInteractive", "-Command", script, text]
        elif backend == "espeak":
            argv = ["espeak", "-v", self._language, "-s", "150", text]
        else:
            return None

        try:
            return subprocess.Popen(argv, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError:
            return None


class _ToneCue:
    """Short synthesized beep played on a pygame mixer channel."""

    _sample_rate = 22050
    _amp = 32767

    def __init__(self, frequency_hz: float = 660.0, duration_s: float = 0.25, gain: float = 0.30) -> None:
        self._frequency_hz = float(frequency_hz)
        self._duration_s = float(duration_s)
        self._gain = float(gain)
        self._sound: pygame.mixer.Sound | None = None

    def play(self) -> None:
        if self._sound is None:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=self._sample_rate, size=-16, channels=1, buffer=512)
            # pygame.init() may already have opened the mixer in another format.
            rate, _size, channels = pygame.mixer.get_init()
            pcm = self._render_tone_pcm(int(rate), int(channels))
            self._sound = pygame.mixer.Sound(buffer=pcm.tobytes())
        self._sound.play()

    def _render_tone_pcm(self, rate: int, channels: int) -> array[int]:
        sample_count = max(1, int(rate * self._duration_s))
        fade_n = max(1, int(rate * 0.02))
        out = array("h")
        for idx in range(sample_count):
            envelope = min(1.0, idx / float(fade_n), (sample_count - idx - 1) / float(fade_n))
            phase = (2.0 * math.pi * self._frequency_hz * idx) / float(rate)
            sample = math.sin(phase) * self._gain * max(0.0, envelope)
            out.extend([int(max(-1.0, min(1.0, sample)) * self._amp)] * max(1, channels))
        return out


class App:
    def __init__(
        self,
        surface: pygame.Surface,
        *,
        scheduler: Scheduler,
        settings: SettingsRepository,
        on_frame: Callable[[], None] | None = None,
    ) -> None:
        self._surface = surface
        self._scheduler = scheduler
        self._settings = settings
        self._on_frame = on_frame
        self._screens: list[Screen] = []
        self._running = True
        self._fonts: dict[int, pygame.font.Font] = {}

    @property
    def running(self) -> bool:
        return self._running

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def settings(self) -> SettingsRepository:
        return self._settings

    @property
    def palette(self) -> Palette:
        return HIGH_CONTRAST_PALETTE if self._settings.current.high_contrast else CALM_PALETTE

    def font(self, size: int) -> pygame.font.Font:
        if self._settings.current.large_text:
            size = int(round(size * 1.3))
        found = self._fonts.get(size)
        if found is None:
            found = pygame.font.Font(None, size)
            self._fonts[size] = found
        return found

    @property
    def depth(self) -> int:
        return len(self._screens)

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            _close_screen(self._screens.pop())

    def quit(self) -> None:
        self._running = False

    def shutdown(self) -> None:
        while self._screens:
            _close_screen(self._screens.pop())
        self._scheduler.clear()

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def update(self) -> None:
        self._scheduler.pump()
        if self._on_frame is not None:
            self._on_frame()

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def _close_screen(screen: Screen) -> None:
    close = getattr(screen, "close", None)
    if callable(close):
        close()


def _is_back_key(event: pygame.event.Event) -> bool:
    return event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE


def _fit_label(font: pygame.font.Font, label: str, max_width: int) -> str:
    if max_width <= 0:
        return ""
    if font.size(label)[0] <= max_width:
        return label
    clipped = label
    while clipped and font.size(f"{clipped}...")[0] > max_width:
        clipped = clipped[:-1]
    return f"{clipped}..." if clipped else "..."


def _draw_frame(app: App, surface: pygame.Surface, title: str, footer: str) -> pygame.Rect:
    """Draw background, bordered frame, header and footer. Returns the content rect."""

    pal = app.palette
    w, h = surface.get_size()
    surface.fill(pal.bg)

    margin = max(10, min(26, w // 34))
    frame = pygame.Rect(margin, margin, max(260, w - margin * 2), max(220, h - margin * 2))
    pygame.draw.rect(surface, pal.panel, frame)
    pygame.draw.rect(surface, pal.border, frame, 2)

    header_h = max(34, min(52, h // 8))
    header = pygame.Rect(frame.x + 2, frame.y + 2, frame.w - 4, header_h)
    pygame.draw.line(surface, pal.border, (header.x, header.bottom), (header.right, header.bottom), 1)
    title_font = app.font(38)
    text = title_font.render(_fit_label(title_font, title, header.w - 24), True, pal.text)
    surface.blit(text, text.get_rect(center=header.center))

    hint_font = app.font(22)
    foot = hint_font.render(_fit_label(hint_font, footer, frame.w - 24), True, pal.muted)
    surface.blit(foot, foot.get_rect(midbottom=(frame.centerx, frame.bottom - 10)))

    return pygame.Rect(
        frame.x + 24,
        header.bottom + 16,
        frame.w - 48,
        frame.h - header_h - 16 - 44,
    )


def _draw_lines(
    app: App,
    surface: pygame.Surface,
    lines: list[tuple[str, tuple[int, int, int]]],
    *,
    x: int,
    y: int,
    max_width: int,
    size: int = 28,
) -> int:
    font = app.font(size)
    for text, color in lines:
        rendered = font.render(_fit_label(font, text, max_width), True, color)
        surface.blit(rendered, (x, y))
        y += rendered.get_height() + 6
    return y


class PlaceholderScreen:
    def __init__(self, app: App, title: str, body: str) -> None:
        self._app = app
        self._title = title
        self._body = body

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE, pygame.K_RETURN):
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(self._app, surface, self._title, "Esc: Povratak")
        pal = self._app.palette
        _draw_lines(self._app, surface, [(self._body, pal.text)], x=content.x, y=content.y, max_width=content.w)


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        key = event.key
        if key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._activate()
        elif key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._back()

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def _activate(self) -> None:
        if not self._items:
            return
        self._items[self._selected].action()

    def _back(self) -> None:
        if self._is_root:
            self._app.quit()
        else:
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        content = _draw_frame(self._app, surface, self._title, "Enter: Odaberi  |  Esc: Povratak")
        font = self._app.font(30)

        item_count = max(1, len(self._items))
        gap = 6
        row_h = max(26, min(40, (content.h - gap * (item_count + 1)) // item_count))
        y = content.y
        for idx, item in enumerate(self._items):
            row = pygame.Rect(content.x, y, content.w, row_h)
            selected = idx == self._selected
            if selected:
                pygame.draw.rect(surface, pal.active_bg, row)
            pygame.draw.rect(surface, pal.border, row, 1)
            color = pal.active_text if selected else pal.text
            text = font.render(_fit_label(font, item.label, row.w - 20), True, color)
            surface.blit(text, (row.x + 10, row.y + (row.h - text.get_height()) // 2))
            y += row_h + gap


class TransitionTimerScreen:
    def __init__(self, app: App, *, cues: CueBoard) -> None:
        self._app = app
        self._timer = CountdownTimer(scheduler=app.scheduler, cues=cues)

    def close(self) -> None:
        self._timer.close()

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        if event.type != pygame.KEYDOWN:
            return
        digit_keys = (pygame.K_1, pygame.K_2, pygame.K_3, pygame.K_4)
        if event.key in digit_keys:
            self._timer.select_preset(PRESET_MINUTES[digit_keys.index(event.key)])
        elif event.key in (pygame.K_RETURN, pygame.K_SPACE):
            if self._timer.running:
                self._timer.stop()
            else:
                self._timer.start()
        elif event.key == pygame.K_r:
            self._timer.reset()

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        snap = self._timer.snapshot()
        content = _draw_frame(
            self._app,
            surface,
            "Timer za tranziciju",
            "1-4: Trajanje  |  Enter: Start/Stop  |  R: Reset  |  Esc: Povratak",
        )

        presets = "   ".join(
            f"[{m} min]" if m == snap.preset_minutes else f"{m} min" for m in PRESET_MINUTES
        )
        _draw_lines(self._app, surface, [(presets, pal.muted)], x=content.x, y=content.y, max_width=content.w)

        big = self._app.font(120).render(snap.display, True, pal.text)
        surface.blit(big, big.get_rect(center=(content.centerx, content.centery)))

        if snap.announcement:
            msg = self._app.font(36).render(snap.announcement, True, pal.good)
            surface.blit(msg, msg.get_rect(midbottom=(content.centerx, content.bottom)))


class BreathingScreen:
    def __init__(self, app: App, *, cues: CueBoard) -> None:
        self._app = app
        self._cues = cues
        self._cycle = BreathingCycle(scheduler=app.scheduler, on_phase_change=self._on_phase_change)

    def close(self) -> None:
        self._cycle.close()

    def _on_phase_change(self, phase: BreathPhase) -> None:
        self._cues.speak(PHASE_LABELS[phase])

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_RETURN, pygame.K_SPACE):
            self._cycle.toggle_running()
        elif event.key == pygame.K_r:
            self._cycle.reset()

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        snap = self._cycle.snapshot()
        content = _draw_frame(
            self._app,
            surface,
            "Disanje 4-4-6",
            "Enter: Start/Stop  |  R: Reset  |  Esc: Povratak",
        )

        center = (content.centerx, content.centery)
        max_r = max(20, min(content.w, content.h) // 2 - 20)
        if self._app.settings.current.reduced_motion:
            radius = max_r
        else:
            duration = PHASE_DURATIONS_S[snap.phase]
            progress = 1.0 - (snap.seconds_left - 1) / float(duration)
            if snap.phase is BreathPhase.IN:
                scale = 0.5 + 0.5 * progress
            elif snap.phase is BreathPhase.HOLD:
                scale = 1.0
            else:
                scale = 1.0 - 0.5 * progress
            radius = max(10, int(max_r * scale))
        pygame.draw.circle(surface, pal.border, center, radius, 3)

        label = self._app.font(64).render(snap.label, True, pal.text)
        surface.blit(label, label.get_rect(center=(center[0], center[1] - 24)))
        count = self._app.font(48).render(f"{snap.seconds_left}s", True, pal.muted)
        surface.blit(count, count.get_rect(center=(center[0], center[1] + 30)))


class AacScreen:
    _columns = 2

    def __init__(self, app: App, *, cues: CueBoard) -> None:
        self._app = app
        self._board = AacBoard(cues=cues)
        self._selected = 0

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        if event.type != pygame.KEYDOWN:
            return
        cards = self._board.cards()
        moves = {pygame.K_LEFT: -1, pygame.K_RIGHT: 1, pygame.K_UP: -self._columns, pygame.K_DOWN: self._columns}
        if event.key in moves:
            self._selected = (self._selected + moves[event.key]) % len(cards)
        elif event.key in (pygame.K_RETURN, pygame.K_SPACE):
            self._board.press(cards[self._selected].card_id)

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        content = _draw_frame(self._app, surface, "AAC - brza komunikacija", "Strelice: Odaberi  |  Enter: Reci  |  Esc")
        msg = self._app.font(40).render(self._board.message, True, pal.good)
        surface.blit(msg, msg.get_rect(midtop=(content.centerx, content.y)))

        font = self._app.font(28)
        cards = self._board.cards()
        rows = (len(cards) + self._columns - 1) // self._columns
        top = content.y + msg.get_height() + 16
        cell_w = content.w // self._columns
        cell_h = max(28, (content.bottom - top) // max(1, rows))
        for idx, card in enumerate(cards):
            r, c = divmod(idx, self._columns)
            cell = pygame.Rect(content.x + c * cell_w + 4, top + r * cell_h + 4, cell_w - 8, cell_h - 8)
            selected = idx == self._selected
            if selected:
                pygame.draw.rect(surface, pal.active_bg, cell)
            pygame.draw.rect(surface, pal.border, cell, 1)
            text = font.render(card.label, True, pal.active_text if selected else pal.text)
            surface.blit(text, text.get_rect(center=cell.center))


class QuizScreen:
    def __init__(self, app: App) -> None:
        self._app = app
        self._quiz = QuizEngine()

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        if event.type != pygame.KEYDOWN:
            return
        snap = self._quiz.snapshot()
        if snap.finished:
            if event.key in (pygame.K_RETURN, pygame.K_r):
                self._quiz.reset()
            return
        digit_keys = (pygame.K_1, pygame.K_2, pygame.K_3, pygame.K_4, pygame.K_5)
        if event.key in digit_keys:
            idx = digit_keys.index(event.key)
            assert snap.question is not None
            if idx < len(snap.question.options):
                self._quiz.pick(idx)
        elif event.key == pygame.K_RETURN and self._quiz.can_advance:
            self._quiz.advance()

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        snap = self._quiz.snapshot()
        if snap.finished:
            content = _draw_frame(self._app, surface, "Mini-kviz: Rezultat", "Enter: Ponovi  |  Esc: Povratak")
            text = self._app.font(64).render(f"Točno: {snap.score} / {snap.total}", True, pal.text)
            surface.blit(text, text.get_rect(center=content.center))
            return

        content = _draw_frame(
            self._app,
            surface,
            f"Mini-kviz  {snap.question_index + 1} / {snap.total}",
            "1-3: Odgovor  |  Enter: Sljedeće  |  Esc: Povratak",
        )
        assert snap.question is not None
        lines: list[tuple[str, tuple[int, int, int]]] = [(snap.question.prompt, pal.text), ("", pal.text)]
        for idx, option in enumerate(snap.question.options):
            color = pal.text
            if snap.picked_index is not None:
                if idx == snap.picked_index:
                    color = pal.good if idx == snap.question.correct_index else pal.bad
                else:
                    color = pal.muted
            lines.append((f"{idx + 1}) {option}", color))
        if snap.feedback:
            lines.extend([("", pal.text), (snap.feedback, pal.muted)])
        _draw_lines(self._app, surface, lines, x=content.x, y=content.y, max_width=content.w)


class ScheduleScreen:
    _time_step_min = 30

    def __init__(self, app: App, *, schedule: VisualSchedule) -> None:
        self._app = app
        self._schedule = schedule
        self._selected = 0
        self._new_time = "09:00"
        self._new_title = ""

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        if event.type != pygame.KEYDOWN:
            return
        items = self._schedule.items()
        if event.key == pygame.K_UP and items:
            self._selected = (self._selected - 1) % len(items)
        elif event.key == pygame.K_DOWN and items:
            self._selected = (self._selected + 1) % len(items)
        elif event.key == pygame.K_TAB and items:
            self._schedule.toggle_done(items[self._selected].item_id)
        elif event.key == pygame.K_DELETE and items:
            self._schedule.remove(items[self._selected].item_id)
            self._selected = max(0, min(self._selected, len(items) - 2))
        elif event.key == pygame.K_PAGEUP:
            self._shift_time(self._time_step_min)
        elif event.key == pygame.K_PAGEDOWN:
            self._shift_time(-self._time_step_min)
        elif event.key == pygame.K_F5:
            self._schedule.reset_to_seed()
            self._selected = 0
        elif event.key == pygame.K_RETURN:
            if self._schedule.add(self._new_time, self._new_title) is not None:
                self._new_title = ""
        elif event.key == pygame.K_BACKSPACE:
            self._new_title = self._new_title[:-1]
        elif event.unicode and event.unicode.isprintable():
            self._new_title += event.unicode

    def _shift_time(self, delta_min: int) -> None:
        total = (minutes_from_time(self._new_time) + delta_min) % (24 * 60)
        self._new_time = f"{total // 60:02d}:{total % 60:02d}"

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        content = _draw_frame(
            self._app,
            surface,
            "Vizualni raspored",
            "Tab: Gotovo  |  Del: Obriši  |  PgUp/PgDn: Vrijeme  |  Enter: Dodaj  |  F5: Reset  |  Esc",
        )
        lines: list[tuple[str, tuple[int, int, int]]] = [
            (f"Novo: {self._new_time}  {self._new_title}_", pal.muted),
            ("", pal.text),
        ]
        for idx, item in enumerate(self._schedule.items()):
            marker = ">" if idx == self._selected else " "
            status = "Gotovo" if item.done else "Aktivno"
            color = pal.muted if item.done else pal.text
            lines.append((f"{marker} {item.time}  {item.title}  [{status}]", color))
        _draw_lines(self._app, surface, lines, x=content.x, y=content.y, max_width=content.w)


class SettingsScreen:
    _rows: tuple[tuple[str, str], ...] = (
        ("large_text", "Veći tekst"),
        ("reduced_motion", "Manje animacija"),
        ("high_contrast", "Visoki kontrast"),
        ("enable_speech", "Uključi govor"),
        ("enable_beep", "Beep na kraju timera"),
    )

    def __init__(self, app: App) -> None:
        self._app = app
        self._selected = 0

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        if event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_UP:
            self._selected = (self._selected - 1) % len(self._rows)
        elif event.key == pygame.K_DOWN:
            self._selected = (self._selected + 1) % len(self._rows)
        elif event.key in (pygame.K_RETURN, pygame.K_SPACE):
            self._app.settings.toggle(self._rows[self._selected][0])

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        content = _draw_frame(self._app, surface, "Postavke (low-stim)", "Enter: Uključi/Isključi  |  Esc: Povratak")
        current = self._app.settings.current
        lines = []
        for idx, (field_name, label) in enumerate(self._rows):
            marker = ">" if idx == self._selected else " "
            box = "[x]" if getattr(current, field_name) else "[ ]"
            lines.append((f"{marker} {box} {label}", pal.text))
        _draw_lines(self._app, surface, lines, x=content.x, y=content.y, max_width=content.w)


class PlacementScreen:
    """School map game: pick a tool (click, 1-3 or drag) and drop it on a zone."""

    def __init__(self, app: App) -> None:
        self._app = app
        self._puzzle = PlacementPuzzle()
        self._zone_cursor = 0
        self._zone_hitboxes: dict[str, pygame.Rect] = {}
        self._tool_hitboxes: dict[str, pygame.Rect] = {}
        self._dragging: str | None = None
        self._press_was_held = False

    @property
    def puzzle(self) -> PlacementPuzzle:
        return self._puzzle

    def tool_rect(self, tool_id: str) -> pygame.Rect | None:
        return self._tool_hitboxes.get(tool_id)

    def zone_rect(self, zone_id: str) -> pygame.Rect | None:
        return self._zone_hitboxes.get(zone_id)

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        snap = self._puzzle.snapshot()
        if event.type == pygame.KEYDOWN:
            tool_keys = (pygame.K_1, pygame.K_2, pygame.K_3, pygame.K_4)
            if event.key in tool_keys:
                idx = tool_keys.index(event.key)
                if idx < len(snap.tools):
                    self._puzzle.select_tool(snap.tools[idx].tool_id)
            elif event.key == pygame.K_UP:
                self._zone_cursor = (self._zone_cursor - 1) % snap.total_zones
            elif event.key == pygame.K_DOWN:
                self._zone_cursor = (self._zone_cursor + 1) % snap.total_zones
            elif event.key in (pygame.K_RETURN, pygame.K_SPACE):
                self._puzzle.place_selected(snap.zones[self._zone_cursor].zone.zone_id)
            elif event.key == pygame.K_r:
                self._puzzle.reset()
            return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            tool_id = self._hit(self._tool_hitboxes, event.pos)
            if tool_id is not None:
                # Pressing starts a drag; only a click on the held tool releases it.
                self._press_was_held = snap.selected_tool == tool_id
                self._dragging = tool_id
                self._puzzle.hold_tool(tool_id)
                return
            zone_id = self._hit(self._zone_hitboxes, event.pos)
            if zone_id is not None:
                self._puzzle.place_selected(zone_id)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and self._dragging is not None:
            zone_id = self._hit(self._zone_hitboxes, event.pos)
            if zone_id is not None:
                self._puzzle.place(zone_id, self._dragging)
            elif self._press_was_held and self._hit(self._tool_hitboxes, event.pos) == self._dragging:
                self._puzzle.select_tool(self._dragging)
            self._dragging = None
            self._press_was_held = False

    @staticmethod
    def _hit(hitboxes: dict[str, pygame.Rect], pos: tuple[int, int]) -> str | None:
        return next((key for key, rect in hitboxes.items() if rect.collidepoint(pos)), None)

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        snap = self._puzzle.snapshot()
        content = _draw_frame(
            self._app,
            surface,
            "Igra: Uređujemo školu",
            "1-3/klik: Alat  |  Gore/Dolje: Mjesto  |  Enter: Postavi  |  R: Reset  |  Esc",
        )

        small = self._app.font(24)
        status = f"Bodovi: {snap.score}    Riješeno: {snap.completed_count}/{snap.total_zones}"
        _draw_lines(
            self._app,
            surface,
            [(status, pal.text), (snap.feedback, pal.muted)],
            x=content.x,
            y=content.y,
            max_width=content.w,
            size=24,
        )

        map_w = int(content.w * 0.62)
        top = content.y + 64
        row_h = max(40, min(70, (content.bottom - top - 40) // max(1, snap.total_zones)))
        self._zone_hitboxes.clear()
        for idx, view in enumerate(snap.zones):
            rect = pygame.Rect(content.x, top + idx * (row_h + 6), map_w, row_h)
            self._zone_hitboxes[view.zone.zone_id] = rect
            color = pal.good if view.solved else pal.bad if view.placed_tool is not None else pal.border
            pygame.draw.rect(surface, color, rect, 3 if idx == self._zone_cursor else 1)
            placed = "Ovdje postavi rješenje" if view.placed_tool is None else f"Postavljeno: {view.placed_tool.name}"
            surface.blit(small.render(f"{view.zone.title}: {view.zone.obstacle}", True, pal.text), (rect.x + 8, rect.y + 6))
            surface.blit(small.render(placed, True, pal.muted), (rect.x + 8, rect.y + 6 + small.get_height()))

        tools_x = content.x + map_w + 16
        tools_w = content.right - tools_x
        self._tool_hitboxes.clear()
        for idx, tool in enumerate(snap.tools):
            rect = pygame.Rect(tools_x, top + idx * (row_h + 6), tools_w, row_h)
            self._tool_hitboxes[tool.tool_id] = rect
            selected = snap.selected_tool == tool.tool_id
            if selected:
                pygame.draw.rect(surface, pal.active_bg, rect)
            pygame.draw.rect(surface, pal.border, rect, 1)
            text = small.render(f"{idx + 1}) {tool.name}", True, pal.active_text if selected else pal.text)
            surface.blit(text, text.get_rect(center=rect.center))

        if snap.badge is not BadgeTier.NONE:
            badge = self._app.font(30).render(f"{BADGE_TEXT[snap.badge]} - odličan posao!", True, pal.good)
            surface.blit(badge, badge.get_rect(midbottom=(content.centerx, content.bottom)))


class ReflectionScreen:
    _questions: tuple[str, str] = (
        "1) Što bi tebi pomoglo kad bi u školi postojale prepreke?",
        "2) Koju bi jednu promjenu predložio da škola bude pristupačnija?",
    )

    def __init__(self, app: App, *, repository: ReflectionRepository) -> None:
        self._app = app
        self._repo = repository
        self._answers = repository.load()
        self._field = 0

    def handle_event(self, event: pygame.event.Event) -> None:
        if _is_back_key(event):
            self._app.pop()
            return
        if event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_TAB:
            self._field = 1 - self._field
            return
        if event.key == pygame.K_F2:
            self._answers = self._repo.clear()
            return
        current = self._answers.q1 if self._field == 0 else self._answers.q2
        if event.key == pygame.K_BACKSPACE:
            updated = current[:-1]
        elif event.key == pygame.K_RETURN:
            updated = current + "\n"
        elif event.unicode and event.unicode.isprintable():
            updated = current + event.unicode
        else:
            return
        if self._field == 0:
            self._answers = Reflection(q1=updated, q2=self._answers.q2)
        else:
            self._answers = Reflection(q1=self._answers.q1, q2=updated)
        self._repo.save(self._answers)

    def render(self, surface: pygame.Surface) -> None:
        pal = self._app.palette
        content = _draw_frame(self._app, surface, "Razmisli i razgovaraj", "Tab: Sljedeće pitanje  |  F2: Očisti  |  Esc")
        lines: list[tuple[str, tuple[int, int, int]]] = []
        for idx, (question, answer) in enumerate(zip(self._questions, (self._answers.q1, self._answers.q2))):
            cursor = "_" if idx == self._field else ""
            lines.append((question, pal.text))
            for part in (answer + cursor).split("\n"):
                lines.append((f"   {part}", pal.muted))
            lines.append(("", pal.text))
        lines.append(("(Odgovori se spremaju samo na ovom uređaju.)", pal.muted))
        _draw_lines(self._app, surface, lines, x=content.x, y=content.y, max_width=content.w, size=24)


def _open_store() -> KeyValueStore:
    store = SqliteStore(default_db_path())
    if store.available:
        return store
    logger.warning("falling back to in-memory persistence")
    return MemoryStore()


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    pygame.init()

    pygame.display.set_caption("Asistivni alati")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
    frame_clock = pygame.time.Clock()

    store = _open_store()
    settings = SettingsRepository(store)
    reflections = ReflectionRepository(store)
    schedule = VisualSchedule(store)

    speaker = _OfflineTtsSpeaker()
    cues = CueBoard(
        speaker=speaker,
        cue=_ToneCue(),
        speech_enabled=lambda: settings.current.enable_speech,
        beep_enabled=lambda: settings.current.enable_beep,
    )

    app = App(surface, scheduler=Scheduler(RealClock()), settings=settings, on_frame=speaker.update)

    autism_menu = MenuScreen(
        app,
        "Autizam (ASD) - asistivni alati",
        [
            MenuItem("Raspored", lambda: app.push(ScheduleScreen(app, schedule=schedule))),
            MenuItem("Tranzicija", lambda: app.push(TransitionTimerScreen(app, cues=cues))),
            MenuItem("Komunikacija", lambda: app.push(AacScreen(app, cues=cues))),
            MenuItem("Smiri se", lambda: app.push(BreathingScreen(app, cues=cues))),
            MenuItem("Kviz", lambda: app.push(QuizScreen(app))),
            MenuItem("Postavke", lambda: app.push(SettingsScreen(app))),
            MenuItem("Povratak", app.pop),
        ],
    )
    movement_menu = MenuScreen(
        app,
        "Pokret i tijelo",
        [
            MenuItem("Igraj i otkrij", lambda: app.push(PlacementScreen(app))),
            MenuItem("Razmisli", lambda: app.push(ReflectionScreen(app, repository=reflections))),
            MenuItem("Povratak", app.pop),
        ],
    )

    def placeholder(title: str, topic: str) -> Callable[[], None]:
        return lambda: app.push(PlaceholderScreen(app, title, f"Ovdje možeš dodati sadržaj vezan uz {topic}."))

    main_items = [
        MenuItem("Autizam", lambda: app.push(autism_menu)),
        MenuItem("Pokret i tijelo", lambda: app.push(movement_menu)),
        MenuItem("Vid", placeholder("Vid", "vid")),
        MenuItem("Sluh", placeholder("Sluh", "sluh")),
        MenuItem("Disleksija", placeholder("Disleksija", "disleksiju")),
        MenuItem("Emocije", placeholder("Emocije", "emocije")),
        MenuItem("Izlaz", app.quit),
    ]
    app.push(MenuScreen(app, "Odabir poteškoća", main_items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        app.shutdown()
        speaker.stop()
        if isinstance(store, SqliteStore):
            store.close()
        pygame.quit()

    return 0
