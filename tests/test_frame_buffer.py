from ch8.core.frame_buffer import FrameBuffer


def lit(fb):
    return {(i % FrameBuffer.WIDTH, i // FrameBuffer.WIDTH) for i in range(FrameBuffer.SIZE) if fb.is_set(i)}


def test_starts_blank():
    fb = FrameBuffer()
    assert fb.lit_count == 0
    assert len(fb.pixels) == 64 * 32


def test_draw_msb_first():
    fb = FrameBuffer()
    assert fb.draw_sprite(10, 5, [0b1010_0001]) is False
    assert lit(fb) == {(10, 5), (12, 5), (17, 5)}


def test_row_major_indexing():
    fb = FrameBuffer()
    fb.draw_sprite(3, 2, [0x80])
    assert fb.is_set(3 + 2 * 64)
    assert fb.is_set_xy(3, 2)


def test_horizontal_wrap():
    fb = FrameBuffer()
    fb.draw_sprite(63, 0, [0xFF])
    assert lit(fb) == {(63, 0), (0, 0), (1, 0), (2, 0), (3, 0), (4, 0), (5, 0), (6, 0)}


def test_vertical_wrap():
    fb = FrameBuffer()
    fb.draw_sprite(0, 30, [0x80, 0x80, 0x80, 0x80])
    assert lit(fb) == {(0, 30), (0, 31), (0, 0), (0, 1)}


def test_redraw_erases_and_reports_collision():
    fb = FrameBuffer()
    sprite = [0xF0, 0x90, 0xF0]
    assert fb.draw_sprite(20, 10, sprite) is False
    assert fb.lit_count == 10
    assert fb.draw_sprite(20, 10, sprite) is True
    assert fb.lit_count == 0


def test_partial_overlap_collides():
    fb = FrameBuffer()
    fb.draw_sprite(0, 0, [0x80])
    assert fb.draw_sprite(0, 0, [0xC0]) is True
    assert lit(fb) == {(1, 0)}


def test_turning_pixels_on_is_not_a_collision():
    fb = FrameBuffer()
    fb.draw_sprite(0, 0, [0x80])
    assert fb.draw_sprite(1, 0, [0x80]) is False


def test_anchor_outside_display_is_ignored():
    fb = FrameBuffer()
    assert fb.draw_sprite(64, 0, [0xFF]) is False
    assert fb.draw_sprite(0, 32, [0xFF]) is False
    assert fb.draw_sprite(200, 100, [0xFF]) is False
    assert fb.lit_count == 0


def test_empty_sprite_draws_nothing():
    fb = FrameBuffer()
    assert fb.draw_sprite(0, 0, []) is False
    assert fb.lit_count == 0


def test_clear():
    fb = FrameBuffer()
    fb.draw_sprite(0, 0, [0xFF] * 15)
    fb.clear()
    assert fb.lit_count == 0
