"""
Human Play Mode
================

Play Snake Boy interactively in a pygame window with a four-shade
handheld palette and square-wave sound effects.

Controls:
    - Arrows / WASD: Steer
    - Enter / Space: Start, pause, resume
    - P: Pause / resume
    - Tab: Cycle mode (start screen only)
    - Z: Speed boost ability
    - X: Shield ability
    - R: Back to the start screen
    - ESC: Quit
    - Up Up Down Down Left Right Left Right B A: You know

Usage:
    python -m tools.play_human [--seed SEED] [--scale SCALE] [--mute] [--debug]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, Optional, Tuple

import numpy as np

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from snake_boy.core.collaborators import (
    AudioCue,
    AudioPlayer,
    CheatCodeMatcher,
    InputQueue,
    NullAudioPlayer,
    Renderer,
    direction_from_token,
)
from snake_boy.core.config_loader import GameConfig, load_config
from snake_boy.core.game import GameStateMachine, GameStatus
from snake_boy.core.state_snapshot import GameSnapshot
from snake_boy.core.storage import JsonHighScoreStore

logger = logging.getLogger(__name__)

# Four-shade handheld palette, lightest first
LIGHTEST = (155, 188, 15)
LIGHT = (139, 172, 15)
DARK = (48, 98, 48)
DARKEST = (15, 56, 15)

SAMPLE_RATE = 22050

# (frequency Hz, duration s, delay s) per cue
CUE_TONES: Dict[AudioCue, Tuple[Tuple[float, float, float], ...]] = {
    AudioCue.MOVE: ((150, 0.05, 0.0),),
    AudioCue.EAT: ((300, 0.1, 0.0), (450, 0.1, 0.1)),
    AudioCue.GAME_OVER: ((400, 0.2, 0.0), (350, 0.2, 0.2), (300, 0.2, 0.4), (250, 0.2, 0.6)),
    AudioCue.START: ((300, 0.1, 0.0), (400, 0.1, 0.1), (500, 0.1, 0.2), (600, 0.1, 0.3)),
    AudioCue.POWER_UP: ((600, 0.1, 0.0), (800, 0.1, 0.1)),
    AudioCue.LEVEL_UP: ((400, 0.1, 0.0), (500, 0.1, 0.1), (600, 0.1, 0.2), (700, 0.1, 0.3), (800, 0.1, 0.4)),
}

KEY_TOKENS = {}
if PYGAME_AVAILABLE:
    KEY_TOKENS = {
        pygame.K_UP: "up", pygame.K_w: "up",
        pygame.K_DOWN: "down", pygame.K_s: "down",
        pygame.K_LEFT: "left", pygame.K_a: "left",
        pygame.K_RIGHT: "right", pygame.K_d: "right",
        pygame.K_b: "b",
    }


def synthesize_cue(tones, volume: float = 0.2) -> np.ndarray:
    """
    Render a cue as mono int16 square-wave samples.

    Each tone gets a 10 ms attack and a linear release to silence.
    """
    total = max(delay + duration for _, duration, delay in tones)
    samples = np.zeros(int(total * SAMPLE_RATE) + 1, dtype=np.float32)

    for frequency, duration, delay in tones:
        n = int(duration * SAMPLE_RATE)
        t = np.arange(n, dtype=np.float32) / SAMPLE_RATE
        wave = np.sign(np.sin(2 * np.pi * frequency * t))
        envelope = np.minimum(1.0, t / 0.01) * np.linspace(1.0, 0.0, n, dtype=np.float32)
        start = int(delay * SAMPLE_RATE)
        samples[start:start + n] += wave * envelope

    samples = np.clip(samples * volume, -1.0, 1.0)
    return (samples * 32767).astype(np.int16)


class PygameAudioPlayer(AudioPlayer):
    """Plays synthesized cues through pygame.mixer."""

    def __init__(self, volume: float = 0.2):
        pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
        self._sounds = {
            cue: pygame.sndarray.make_sound(synthesize_cue(tones, volume))
            for cue, tones in CUE_TONES.items()
        }

    def play(self, cue: AudioCue) -> None:
        self._sounds[cue].play()


class PygameRenderer(Renderer):
    """
    Draws snapshots onto a pygame surface.

    The playfield sits below a two-line HUD; everything is scaled from
    the configured cell size.
    """

    def __init__(self, screen: "pygame.Surface", config: GameConfig, scale: int = 2):
        self._screen = screen
        self._config = config
        self._cell = config.grid.cell_size * scale
        self._hud_height = 2 * self._cell + 8

        pygame.font.init()
        self._font_large = pygame.font.Font(None, 18 * scale)
        self._font_small = pygame.font.Font(None, 12 * scale)

    @staticmethod
    def window_size(config: GameConfig, scale: int = 2) -> Tuple[int, int]:
        cell = config.grid.cell_size * scale
        return config.grid.width * cell, config.grid.height * cell + 2 * cell + 8

    def render(self, snapshot: GameSnapshot) -> None:
        self._screen.fill(LIGHTEST)
        self._draw_grid(snapshot)
        self._draw_obstacles(snapshot)
        self._draw_food(snapshot)
        self._draw_power_up(snapshot)
        self._draw_snake(snapshot)
        self._draw_hud(snapshot)

        status = snapshot.status
        if status == GameStatus.START.name:
            self._draw_overlay("SNAKE BOY", f"MODE: {snapshot.mode}", "ENTER TO START  TAB: MODE")
        elif status == GameStatus.PAUSED.name:
            self._draw_overlay("PAUSED", None, "ENTER TO RESUME")
        elif status == GameStatus.GAMEOVER.name:
            self._draw_overlay("GAME OVER", f"SCORE {snapshot.score}", "ENTER TO PLAY AGAIN")
        elif status == GameStatus.LEVELUP.name:
            self._draw_level_transition(snapshot)

        pygame.display.flip()

    def _cell_rect(self, x: int, y: int, inset: int = 1) -> "pygame.Rect":
        return pygame.Rect(
            x * self._cell + inset,
            self._hud_height + y * self._cell + inset,
            self._cell - 2 * inset,
            self._cell - 2 * inset
        )

    def _draw_grid(self, snapshot: GameSnapshot) -> None:
        width = snapshot.grid_width * self._cell
        height = snapshot.grid_height * self._cell
        for x in range(0, width + 1, self._cell):
            pygame.draw.line(self._screen, LIGHT, (x, self._hud_height), (x, self._hud_height + height))
        for y in range(0, height + 1, self._cell):
            pygame.draw.line(self._screen, LIGHT, (0, self._hud_height + y), (width, self._hud_height + y))

    def _draw_obstacles(self, snapshot: GameSnapshot) -> None:
        for cell in snapshot.obstacles:
            pygame.draw.rect(self._screen, DARK, self._cell_rect(cell.x, cell.y, 0))
            pygame.draw.rect(self._screen, DARKEST, self._cell_rect(cell.x, cell.y, 0), 2)

    def _draw_food(self, snapshot: GameSnapshot) -> None:
        if snapshot.food is None:
            return
        # Pulse with the animation frame
        inset = 2 + (snapshot.food_animation_frame % 2) * 2
        rect = self._cell_rect(snapshot.food.position.x, snapshot.food.position.y, inset)
        if snapshot.food.kind.value == "regular":
            pygame.draw.rect(self._screen, DARKEST, rect)
        elif snapshot.food.kind.value == "bonus":
            pygame.draw.ellipse(self._screen, DARKEST, rect)
        else:
            pygame.draw.polygon(self._screen, DARKEST, [
                rect.midtop, rect.midright, rect.midbottom, rect.midleft
            ])

    def _draw_power_up(self, snapshot: GameSnapshot) -> None:
        power_up = snapshot.power_up
        if power_up is None:
            return
        rect = self._cell_rect(power_up.position.x, power_up.position.y, 2)
        color = DARKEST if snapshot.power_up_animation_frame % 2 == 0 else DARK
        pygame.draw.rect(self._screen, color, rect, 2)
        label = self._font_small.render(power_up.kind.value[0].upper(), True, color)
        self._screen.blit(label, label.get_rect(center=rect.center))

    def _draw_snake(self, snapshot: GameSnapshot) -> None:
        if not snapshot.snake_visible:
            return
        body_color = LIGHT if snapshot.snake_shielded else DARK
        for cell in snapshot.snake_body[1:]:
            pygame.draw.rect(self._screen, body_color, self._cell_rect(cell.x, cell.y))
        if snapshot.snake_body:
            head = snapshot.snake_body[0]
            pygame.draw.rect(self._screen, DARKEST, self._cell_rect(head.x, head.y))

    def _draw_hud(self, snapshot: GameSnapshot) -> None:
        pygame.draw.rect(self._screen, DARKEST, (0, 0, self._screen.get_width(), self._hud_height))

        left = f"SCORE {snapshot.score:05d}  HI {snapshot.high_score:05d}"
        self._screen.blit(self._font_small.render(left, True, LIGHTEST), (6, 4))

        parts = [f"LV {snapshot.level}", f"x{snapshot.combo_multiplier:.1f}"]
        if snapshot.mode == "TIME_ATTACK":
            parts.append(f"T {snapshot.time_remaining_display}")
        effects = snapshot.active_effects
        if effects.shield:
            parts.append("SHIELD")
        if effects.speed_boost:
            parts.append("BOOST")
        if effects.slow_mode:
            parts.append("SLOW")
        if snapshot.invulnerable:
            parts.append("INVULNERABLE")
        self._screen.blit(
            self._font_small.render("  ".join(parts), True, LIGHT),
            (6, 4 + self._cell)
        )

    def _draw_overlay(self, title: str, subtitle: Optional[str], hint: str) -> None:
        overlay = pygame.Surface(self._screen.get_size(), pygame.SRCALPHA)
        overlay.fill((*LIGHTEST, 200))
        self._screen.blit(overlay, (0, 0))

        cx = self._screen.get_width() // 2
        cy = self._screen.get_height() // 2
        title_surface = self._font_large.render(title, True, DARKEST)
        self._screen.blit(title_surface, title_surface.get_rect(center=(cx, cy - self._cell)))
        if subtitle:
            sub = self._font_small.render(subtitle, True, DARK)
            self._screen.blit(sub, sub.get_rect(center=(cx, cy)))
        hint_surface = self._font_small.render(hint, True, DARK)
        self._screen.blit(hint_surface, hint_surface.get_rect(center=(cx, cy + self._cell)))

    def _draw_level_transition(self, snapshot: GameSnapshot) -> None:
        # Banner slides in over the transition window
        progress = snapshot.level_transition.progress
        width = int(self._screen.get_width() * progress)
        cy = self._screen.get_height() // 2
        pygame.draw.rect(self._screen, DARKEST, (0, cy - self._cell, width, 2 * self._cell))
        text = self._font_large.render(f"LEVEL {snapshot.level}", True, LIGHTEST)
        self._screen.blit(text, text.get_rect(center=(self._screen.get_width() // 2, cy)))


class HumanPlayer:
    """
    Keyboard-driven session: turns pygame events into game commands and
    pumps the game's scheduler once per frame.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        scale: int = 2,
        target_fps: int = 60,
        mute: bool = False
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame required. Install: pip install pygame")

        if config is None:
            config = load_config()

        self._config = config
        self._target_fps = target_fps

        pygame.init()
        self._screen = pygame.display.set_mode(PygameRenderer.window_size(config, scale))
        pygame.display.set_caption("Snake Boy")
        self._clock = pygame.time.Clock()

        audio: AudioPlayer = NullAudioPlayer()
        if not mute:
            try:
                audio = PygameAudioPlayer()
            except pygame.error as e:
                logger.warning("Audio unavailable, continuing muted: %s", e)

        self._input = InputQueue()
        self._cheat = CheatCodeMatcher(config.cheat.sequence)
        self._game = GameStateMachine(
            config=config,
            input_source=self._input,
            renderer=PygameRenderer(self._screen, config, scale),
            audio=audio,
            store=JsonHighScoreStore.from_config(config),
            seed=seed,
        )
        self._running = True

    def run(self) -> int:
        """Run the game loop. Returns the last score."""
        print("=== Snake Boy ===")
        print("Arrows/WASD steer, Enter starts or pauses, Tab picks a mode")
        print("Z speed boost, X shield, R restart, ESC quit")
        print()

        self._game.render()
        while self._running:
            self._handle_events()
            self._game.update()
            self._clock.tick(self._target_fps)

        pygame.quit()
        return self._game.score

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key)

    def _handle_key(self, key: int) -> None:
        token = KEY_TOKENS.get(key)
        if key == pygame.K_a:
            token = "a" if self._cheat_expects_a() else token

        if token is not None and self._cheat.feed(token):
            self._game.activate_invulnerability()
            print("\n*** INVULNERABLE ***\n")

        if key == pygame.K_ESCAPE:
            self._running = False
        elif key in (pygame.K_RETURN, pygame.K_SPACE):
            self._game.toggle_start_pause()
        elif key == pygame.K_p:
            self._game.toggle_pause()
        elif key == pygame.K_TAB:
            self._game.cycle_mode()
        elif key == pygame.K_z:
            self._game.activate_speed_boost()
        elif key == pygame.K_x:
            self._game.activate_shield()
        elif key == pygame.K_r:
            self._game.reset()
            self._cheat.reset()
            self._game.render()
            print("\n=== Game Restarted ===\n")
        elif token is not None:
            direction = direction_from_token(token)
            if direction is not None and self._game.status is GameStatus.PLAYING:
                self._input.queue_direction(direction)

    def _cheat_expects_a(self) -> bool:
        """The A key doubles as LEFT; it counts as the cheat's final "a" right after a "b"."""
        return self._last_token == "b"

    @property
    def _last_token(self) -> Optional[str]:
        recent = self._cheat.recent
        return recent[-1] if recent else None


def main():
    parser = argparse.ArgumentParser(description="Play Snake Boy interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--scale", type=int, default=2, help="Pixel scale (default: 2)")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--mute", action="store_true", help="Disable sound")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

    try:
        config = load_config()
        player = HumanPlayer(
            config=config,
            seed=args.seed,
            scale=args.scale,
            target_fps=args.fps,
            mute=args.mute
        )
        score = player.run()
        print(f"\nFinal Score: {score}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
