#!/usr/bin/env python3
"""
Lightning viewer with Pygame
Click anywhere to strike the clicked point from the origin
"""

import argparse
import logging
import os
from datetime import datetime

import pygame

from lightning_sim.config import SimConfig
from lightning_sim.presets import PRESETS, get_preset
from lightning_sim.simulation import Simulation

BACKGROUND = (0, 0, 0)
BOLT_COLOR = (255, 255, 255)
PARTICLE_COLOR = (255, 255, 255)


class LightningDemo:
    """Draws a Simulation and feeds it frame timestamps and clicks"""

    def __init__(self, config: SimConfig):
        self.config = config
        self.sim = Simulation(config)

        pygame.init()
        size = (int(config.width), int(config.height))
        self.screen = pygame.display.set_mode(size)
        pygame.display.set_caption("Lightning")
        # Everything is drawn here first, then copied to the screen in one blit
        self.buffer = pygame.Surface(size)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 24)

        # UI state
        self.paused = False
        self.show_info = True

    def save_current_config(self):
        """Save current configuration with timestamp"""
        os.makedirs("presets", exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"presets/lightning_{timestamp}.json"
        self.config.save(filename)
        return filename

    def draw(self):
        """Draw the simulation"""
        self.buffer.fill(BACKGROUND)

        for bolt in self.sim.bolts:
            for piece in bolt.iter_pieces():
                points = [p.as_tuple() for p in piece.vertices()]
                if piece.kind == "rectangle":
                    pygame.draw.polygon(self.buffer, BOLT_COLOR, points)
                else:
                    pygame.draw.line(self.buffer, BOLT_COLOR, points[0], points[1], 1)

        for particle in self.sim.particles:
            pos = (int(particle.position.x), int(particle.position.y))
            pygame.draw.circle(self.buffer, PARTICLE_COLOR, pos, max(1, int(particle.radius)))

        if self.show_info:
            self.draw_info()

        self.screen.blit(self.buffer, (0, 0))

    def draw_info(self):
        """Draw information panel"""
        n_pieces = sum(1 for _ in self.sim.iter_pieces())
        n_growing = sum(1 for bolt in self.sim.bolts if bolt.growing)
        info_lines = [
            f"FPS: {round(self.sim.clock.fps)}",
            f"Bolts: {len(self.sim.bolts)} ({n_growing} growing)",
            f"Pieces: {n_pieces}",
            f"Particles: {len(self.sim.particles)}",
            f"Dropped: {self.sim.clock.dropped:.0f} ms",
            f"Mode: {self.config.bolt.mode} / {self.config.bolt.piece}",
            "",
            "Controls:",
            "Click - Strike target",
            "SPACE - Pause/Resume",
            "A - Toggle auto spawn",
            "R - Reset",
            "S - Save current configuration",
            "I - Toggle info",
            "Q/ESC - Quit",
        ]

        y = 10
        for line in info_lines:
            if line:
                text = self.font.render(line, True, (200, 200, 200))
                self.buffer.blit(text, (10, y))
            y += 25

        if self.paused:
            pause_text = self.font.render("PAUSED", True, (255, 100, 100))
            rect = pause_text.get_rect(center=(int(self.config.width) // 2, 30))
            self.buffer.blit(pause_text, rect)

    def handle_events(self) -> bool:
        """Handle pygame events. Returns False to quit."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False

            elif event.type == pygame.MOUSEBUTTONDOWN:
                if event.button == 1:  # Left mouse button
                    x, y = event.pos
                    self.sim.strike(x, y)

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE or event.key == pygame.K_q:
                    return False
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                    # Don't replay the paused time as a burst of steps
                    self.sim.clock.reset()
                elif event.key == pygame.K_a:
                    self.config.auto_spawn = not self.config.auto_spawn
                    print(f"Auto spawn: {'ON' if self.config.auto_spawn else 'OFF'}")
                elif event.key == pygame.K_r:
                    self.sim.reset()
                elif event.key == pygame.K_i:
                    self.show_info = not self.show_info
                elif event.key == pygame.K_s:
                    filename = self.save_current_config()
                    print(f"Configuration saved to {filename}")

        return True

    def run(self):
        """Main loop"""
        running = True

        while running:
            running = self.handle_events()

            if not self.paused:
                self.sim.advance(pygame.time.get_ticks())

            self.draw()
            pygame.display.flip()

            # Control frame rate
            self.clock.tick(60)

        pygame.quit()


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description='Lightning Simulation')
    parser.add_argument('--preset', type=str, default='strike', choices=sorted(PRESETS),
                        help='Preset to start from')
    parser.add_argument('--load', type=str, help='Path to configuration file to load')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    if args.load and os.path.exists(args.load):
        print(f"Loading configuration from {args.load}")
        config = SimConfig.load(args.load)
    else:
        if args.load:
            print(f"Configuration file {args.load} not found, using preset '{args.preset}'")
        config = get_preset(args.preset).build_config()

    if args.seed is not None:
        config.seed = args.seed

    print("Click to strike, SPACE to pause, I to toggle info, Q to quit")
    LightningDemo(config).run()


if __name__ == "__main__":
    main()
