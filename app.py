# app.py - Dynamic Matrix demo viewer
import time

import cv2
import numpy as np

from curves import ease_in_out, lerp
from engine import MatrixEngine
from layout import Rect
from modes import Mode
from params import Params

WINDOW_NAME = "Dynamic Matrix"
WINDOW_W = 480
WINDOW_H = 860

TRACKBAR_X = "Shift X"
TRACKBAR_Y = "Shift Y"
TRACKBAR_STEPS = 200            # slider range [-1, 1] mapped onto 0..200

CIRCLE_BGR = (255, 255, 255)
TEXT_BGR = (235, 245, 255)
SHADOW_BGR = (25, 25, 25)
SUBPIXEL_SHIFT = 4              # cv2 fixed-point bits for sub-pixel circles

KEY_ESC = 27
KEY_SPACE = 32


def hex_to_bgr(value):
    """'#RGB', '#RRGGBB' or '#AARRGGBB' -> (b, g, r). Anything else is black."""
    h = "".join(ch for ch in str(value) if ch.isalnum())
    try:
        n = int(h, 16) if h else 0
    except ValueError:
        return (0, 0, 0)
    if len(h) == 3:
        r, g, b = (n >> 8) * 17, (n >> 4 & 0xF) * 17, (n & 0xF) * 17
    elif len(h) in (6, 8):
        r, g, b = n >> 16 & 0xFF, n >> 8 & 0xFF, n & 0xFF
    else:
        return (0, 0, 0)
    return (int(b), int(g), int(r))


def slider_to_pos(value):
    return int(round((float(np.clip(value, -1.0, 1.0)) + 1.0) * 0.5 * TRACKBAR_STEPS))


def pos_to_slider(pos):
    return float(np.clip(pos / (TRACKBAR_STEPS * 0.5) - 1.0, -1.0, 1.0))


class Spring:
    """
    Damped spring that chases a target array, same knobs as an interactive spring:
      response         ~ period of the oscillation (seconds)
      damping_fraction 1 = critically damped, < 1 overshoots
    """

    def __init__(self, response=0.22, damping_fraction=0.86):
        self.response = float(response)
        self.damping_fraction = float(damping_fraction)
        self.value = None
        self.velocity = None

    def reset(self, value=None):
        self.value = None if value is None else np.array(value, dtype=np.float64)
        self.velocity = None if value is None else np.zeros_like(self.value)

    def step(self, target, dt):
        target = np.asarray(target, dtype=np.float64)
        if self.value is None or self.value.shape != target.shape:
            self.reset(target)
            return self.value.copy()

        dt = float(max(0.0, min(dt, 1.0 / 20.0)))
        if self.response <= 1e-4:
            self.reset(target)
            return self.value.copy()

        omega = 2.0 * np.pi / self.response
        zeta = max(0.0, self.damping_fraction)

        # semi-implicit Euler, split into small steps for stability at low fps
        substeps = max(1, int(np.ceil(dt / (1.0 / 240.0))))
        h = dt / substeps
        for _ in range(substeps):
            accel = -omega * omega * (self.value - target) - 2.0 * zeta * omega * self.velocity
            self.velocity += accel * h
            self.value += self.velocity * h
        return self.value.copy()


class MatrixTween:
    """Eased move from the last drawn positions into the matrix slots."""

    def __init__(self):
        self.start = None
        self.origin = None
        self.duration = 0.0

    @property
    def active(self):
        return self.origin is not None

    def begin(self, origin, now, duration):
        self.origin = np.array(origin, dtype=np.float64)
        self.start = float(now)
        self.duration = max(1e-6, float(duration))

    def cancel(self):
        self.origin = None

    def sample(self, dest, now):
        dest = np.asarray(dest, dtype=np.float64)
        if self.origin is None or self.origin.shape != dest.shape:
            self.origin = None
            return dest
        t = (float(now) - self.start) / self.duration
        if t >= 1.0:
            self.origin = None
            return dest
        return lerp(self.origin, dest, ease_in_out(t))


def draw_circles(canvas, positions, opacities, highlights, size, highlight_bgr, base_bgr=CIRCLE_BGR):
    """
    White circles at `opacity` over a black canvas, with the highlight colour
    composited on top at `highlight` alpha.
    """
    h, w = canvas.shape[:2]
    radius = max(1, int(round(float(size) * 0.5 * (1 << SUBPIXEL_SHIFT))))
    base = np.asarray(base_bgr, dtype=np.float64)
    hi = np.asarray(highlight_bgr, dtype=np.float64)
    pad = float(size)

    for (x, y), a, k in zip(positions, opacities, highlights):
        if x < -pad or y < -pad or x > w + pad or y > h + pad:
            continue
        a = float(np.clip(a, 0.0, 1.0))
        k = float(np.clip(k, 0.0, 1.0))
        col = base * a * (1.0 - k) + hi * k
        center = (int(round(x * (1 << SUBPIXEL_SHIFT))), int(round(y * (1 << SUBPIXEL_SHIFT))))
        cv2.circle(canvas, center, radius, tuple(float(c) for c in col), -1, cv2.LINE_AA, SUBPIXEL_SHIFT)
    return canvas


class MatrixViewer:
    def __init__(self, engine):
        self.engine = engine
        self.tween = MatrixTween()
        a = engine.attraction_settings
        m = engine.matrix_shift_settings
        self.attraction_spring = Spring(a.spring_response, a.spring_damping_fraction)
        self.shift_spring = Spring(m.spring_response, m.spring_damping_fraction)

        self._dragging = False
        self._drawn_base = None
        self._now = 0.0
        self.trackbars = False

        engine.store.subscribe(self._on_store_change)
        engine.modes.subscribe(self._on_mode_change)

    # ---------- engine events ----------
    def _on_store_change(self, change):
        if change.reason == "to_matrix" and change.animated and self._drawn_base is not None:
            self.tween.begin(self._drawn_base, self._now, change.duration)
        elif change.reason in ("layout", "velocities"):
            # layout: nothing to tween from; velocities: resume from where the dots are now
            self.tween.cancel()
            if change.reason == "layout":
                self.attraction_spring.reset()
                self.shift_spring.reset()

    def _on_mode_change(self, old, new):
        # sliders are zeroed by the engine on every transition; keep the UI in step
        self._set_trackbars(0.0, 0.0)

    # ---------- input ----------
    def on_mouse(self, event, x, y, flags, param=None):
        if event == cv2.EVENT_LBUTTONDOWN:
            self._dragging = True
            self.engine.set_pointer((float(x), float(y)))
        elif event == cv2.EVENT_MOUSEMOVE and self._dragging:
            self.engine.set_pointer((float(x), float(y)))
        elif event == cv2.EVENT_LBUTTONUP:
            self._dragging = False
            self.engine.set_pointer(None)

    def handle_key(self, key):
        s = self.engine.attraction_settings
        m = self.engine.matrix_shift_settings
        if key == KEY_SPACE:
            self.engine.toggle_mode()
        elif key in (ord("r"), ord("R")):
            self.engine.reset_to_random_movement()
        elif key in (ord("i"), ord("I")):
            s.shows_touch_indicator = not s.shows_touch_indicator
        elif key in (ord("h"), ord("H")):
            m.highlight_enabled = not m.highlight_enabled
        elif key in (ord("b"), ord("B")):
            m.boost_policy = "blend" if m.boost_policy == "shrink" else "shrink"
            print(f"Boost policy: {m.boost_policy}")

    def attach_trackbars(self):
        try:
            cv2.createTrackbar(TRACKBAR_X, WINDOW_NAME, slider_to_pos(0.0), TRACKBAR_STEPS, lambda _v: None)
            cv2.createTrackbar(TRACKBAR_Y, WINDOW_NAME, slider_to_pos(0.0), TRACKBAR_STEPS, lambda _v: None)
            self.trackbars = True
        except cv2.error as e:
            print(f"⚠️  Trackbars unavailable: {e}")
            self.trackbars = False

    def _set_trackbars(self, x, y):
        if not self.trackbars:
            return
        try:
            cv2.setTrackbarPos(TRACKBAR_X, WINDOW_NAME, slider_to_pos(x))
            cv2.setTrackbarPos(TRACKBAR_Y, WINDOW_NAME, slider_to_pos(y))
        except cv2.error as e:
            print(f"⚠️  Trackbar reset failed: {e}")
            self.trackbars = False

    def _read_trackbars(self):
        if not self.trackbars:
            return (0.0, 0.0)
        try:
            return (pos_to_slider(cv2.getTrackbarPos(TRACKBAR_X, WINDOW_NAME)),
                    pos_to_slider(cv2.getTrackbarPos(TRACKBAR_Y, WINDOW_NAME)))
        except cv2.error as e:
            print(f"⚠️  Trackbar read failed: {e}")
            self.trackbars = False
            return (0.0, 0.0)

    # ---------- per frame ----------
    def update(self, now, dt):
        self._now = float(now)
        eng = self.engine
        if eng.shift_controls_visible:
            eng.set_shift_sliders(*self._read_trackbars())
        eng.pump(now)

    def render(self, canvas, fps=0.0):
        eng = self.engine
        store = eng.store
        canvas[:] = 0
        if len(store) == 0:
            return canvas

        base = self.tween.sample(store.positions, self._now)
        self._drawn_base = base

        dt = 1.0 / max(fps, 1.0) if fps > 0 else 1.0 / 60.0
        a = eng.attraction_settings
        m = eng.matrix_shift_settings
        self.attraction_spring.response = a.spring_response
        self.attraction_spring.damping_fraction = a.spring_damping_fraction
        self.shift_spring.response = m.spring_response
        self.shift_spring.damping_fraction = m.spring_damping_fraction

        att = self.attraction_spring.step(eng.attraction.offsets(store.positions), dt)
        shift = self.shift_spring.step(eng.matrix_shift.offsets(store.targets), dt)

        draw_circles(
            canvas,
            base + att + shift,
            eng.render_opacities(),
            eng.render_highlights(),
            eng.circle_size,
            hex_to_bgr(m.highlight_color),
        )

        if a.shows_touch_indicator and eng.pointer is not None:
            px, py = eng.pointer
            cv2.circle(canvas, (int(px), int(py)), 7, (180, 180, 180), 1, cv2.LINE_AA)

        self._draw_hud(canvas, fps)
        return canvas

    def _draw_hud(self, canvas, fps):
        H, W = canvas.shape[:2]
        mode = self.engine.mode
        label = {Mode.RANDOM: "RANDOM", Mode.ANIMATING_TO_MATRIX: "ORGANIZING", Mode.MATRIX: "MATRIX"}[mode]
        action = "Organize Matrix" if mode is Mode.RANDOM else "Reset Movement"
        self._text(canvas, f"Mode: {label}   FPS: {fps:5.1f}", (12, 24), 0.55)
        self._text(canvas, f"SPACE {action}  R reset  I indicator  H highlight  B boost", (12, H - 14), 0.45)
        if mode is Mode.MATRIX:
            self._text(canvas, "Matrix Shift: use the trackbars", (12, H - 36), 0.45)

    def _text(self, canvas, s, org, scale):
        cv2.putText(canvas, s, (org[0] + 1, org[1] + 1), cv2.FONT_HERSHEY_SIMPLEX, scale, SHADOW_BGR, 2, cv2.LINE_AA)
        cv2.putText(canvas, s, org, cv2.FONT_HERSHEY_SIMPLEX, scale, TEXT_BGR, 1, cv2.LINE_AA)


def _window_size(default):
    try:
        _, _, w, h = cv2.getWindowImageRect(WINDOW_NAME)
    except cv2.error:
        return default
    if w <= 0 or h <= 0:
        return default
    return (int(w), int(h))


def window_closed(name=WINDOW_NAME):
    # close button: waitKey keeps returning 255, only the visibility flag drops
    try:
        return cv2.getWindowProperty(name, cv2.WND_PROP_VISIBLE) < 1
    except cv2.error:
        return True


def main():
    params = Params()
    engine = MatrixEngine(params=params)
    viewer = MatrixViewer(engine)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW_NAME, WINDOW_W, WINDOW_H)
    cv2.setMouseCallback(WINDOW_NAME, viewer.on_mouse)
    viewer.attach_trackbars()

    size = (WINDOW_W, WINDOW_H)
    engine.set_viewport(Rect.of_size(*size))
    canvas = np.zeros((size[1], size[0], 3), dtype=np.uint8)

    print("\n" + "=" * 60)
    print("DYNAMIC MATRIX")
    print("=" * 60)
    print(f"   {engine.rows} x {engine.columns} circles, gap {engine.gap:g}")
    print("   Drag with the left mouse button to attract circles")
    print("   SPACE - Organize matrix / reset movement")
    print("   R - Reset movement   I - Touch indicator")
    print("   H - Highlight on/off  B - Center boost policy")
    print("   ESC - Exit")
    print("=" * 60 + "\n")

    prev = time.monotonic()
    fps_smooth = 0.0

    while True:
        now = time.monotonic()
        dt = max(1e-6, now - prev)
        prev = now
        fps = 1.0 / dt
        fps_smooth = fps if fps_smooth == 0 else 0.9 * fps_smooth + 0.1 * fps

        new_size = _window_size(size)
        if new_size != size:
            size = new_size
            canvas = np.zeros((size[1], size[0], 3), dtype=np.uint8)
            engine.set_viewport(Rect.of_size(*size))

        viewer.update(now, dt)
        viewer.render(canvas, fps_smooth)
        cv2.imshow(WINDOW_NAME, canvas)

        key = cv2.waitKey(1) & 0xFF
        if key == KEY_ESC or window_closed():
            break
        if key != 255:
            viewer.handle_key(key)

    engine.shutdown()
    cv2.destroyAllWindows()
    print("\n✅ Dynamic Matrix shutdown complete")


if __name__ == "__main__":
    main()
