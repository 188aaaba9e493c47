import numpy as np
import pygame


def to_surface(color: np.ndarray) -> pygame.Surface:
    """
    Wrap a finished (H,W,3) color buffer in a pygame Surface.

    Buffer row 0 is the canvas bottom; surfarray indexes [x, y] with y down,
    so the buffer is flipped and transposed.
    """
    return pygame.surfarray.make_surface(np.flipud(color).transpose(1, 0, 2))


def show(color: np.ndarray, title: str = "softgl"):
    """Present the image in a window until it is closed or ESC is pressed."""
    pygame.init()
    try:
        surface = to_surface(color)
        screen = pygame.display.set_mode(surface.get_size())
        pygame.display.set_caption(title)
        screen.blit(surface, (0, 0))
        pygame.display.flip()

        clock = pygame.time.Clock()
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
            clock.tick(30)
    finally:
        pygame.quit()
