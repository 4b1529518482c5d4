
import numpy as np
from core.models import Detection, FaceBox, Landmark, ViewState
from core.visual import draw_idle, draw_overlays, encode_image, panel_lines


def _det(x=10, y=10, w=30, h=30):
    return Detection(box=FaceBox(x=x, y=y, w=w, h=h), score=0.9,
                     landmarks=[Landmark(name="left_eye", x=x + 20, y=y + 10)])

def test_draw_overlays_cases():
    frame = np.zeros((100, 200, 3), dtype=np.uint8)
    out1 = draw_overlays(frame)
    assert out1.shape == frame.shape and not out1.any()
    out2 = draw_overlays(frame, _det(), ViewState())
    assert out2.shape == frame.shape and out2.any()
    # input frame untouched
    assert not frame.any()

def test_box_clamped_to_frame():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    out = draw_overlays(frame, _det(x=30, y=30, w=100, h=100))
    assert out.shape == frame.shape

def test_mirror_flips_box_not_text():
    frame = np.zeros((100, 200, 3), dtype=np.uint8)
    plain = draw_overlays(frame, _det())
    mirrored = draw_overlays(frame, _det(), mirror=True)
    # left edge of the box (x=10) lands at x=189 after mirroring
    assert plain[25, 10].any()
    assert mirrored[25, 189].any()
    assert not mirrored[25, 10].any()

def test_panel_lines_strip_emoji():
    view = ViewState()
    view.status.message = "✅ Models loaded! Ready for detection."
    text, _ = panel_lines(view)[0]
    assert text == "Models loaded! Ready for detection."

def test_draw_idle():
    img = draw_idle((320, 240), ViewState())
    assert img.shape == (240, 320, 3)

def test_encode_image():
    img = np.zeros((8, 8, 3), dtype=np.uint8)
    assert encode_image(img, ".png").startswith(b"\x89PNG")
    assert encode_image(img, ".jpg")[:2] == b"\xff\xd8"

def test_draw_idle_waiting_hint(monkeypatch):
    import core.visual as visual_mod
    texts = []
    real = visual_mod.cv2.putText
    def spy(img, text, *args, **kwargs):
        texts.append(text)
        return real(img, text, *args, **kwargs)
    monkeypatch.setattr(visual_mod.cv2, "putText", spy)
    draw_idle((320, 240), ViewState(), waiting=True)
    assert "Waiting for camera..." in texts
    texts.clear()
    draw_idle((320, 240), ViewState())
    assert "Start the camera to begin analysis" in texts
