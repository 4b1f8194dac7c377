import pytest

from geckokern.terminal import (
    HISTORY_SIZE,
    Key,
    MouseEvent,
    Screen,
    Terminal,
    VgaColor,
    vga_entry,
    vga_entry_color,
)


def make_terminal(width=10, height=3):
    term = Terminal(Screen(width, height))
    term.clear(vga_entry_color(VgaColor.LIGHT_GREY, VgaColor.BLACK))
    return term


def test_vga_entry_color_nibbles():
    attr = vga_entry_color(VgaColor.LIGHT_GREY, VgaColor.BLUE)
    assert attr & 0x0F == VgaColor.LIGHT_GREY
    assert attr >> 4 == VgaColor.BLUE


def test_vga_entry_layout():
    cell = vga_entry("A", 0x1E)
    assert cell & 0xFF == ord("A")
    assert cell >> 8 == 0x1E


def test_screen_clear_and_rows():
    screen = Screen(5, 2)
    screen.clear(VgaColor.RED)
    screen.put("z", VgaColor.WHITE, 4, 1)
    assert screen.text_row(0) == "     "
    assert screen.text_row(1) == "    z"
    assert screen.cells[0] >> 8 == VgaColor.RED
    with pytest.raises(ValueError):
        screen.put("a", 0, 5, 0)
    with pytest.raises(ValueError):
        screen.text_row(2)


def test_putchar_advances_and_newline():
    term = make_terminal()
    term.putchar("a", VgaColor.WHITE)
    assert (term.column, term.row) == (1, 0)
    term.putchar("\n", VgaColor.WHITE)
    assert (term.column, term.row) == (0, 1)
    assert term.screen.cursor == (0, 1)
    assert term.screen.text_row(0).startswith("a")


def test_putchar_tab_and_nul():
    term = make_terminal()
    term.putchar("\t", VgaColor.WHITE)
    assert term.column == 4
    term.putchar("\0", VgaColor.WHITE)
    assert term.column == 4
    with pytest.raises(ValueError):
        term.putchar("ab", VgaColor.WHITE)


def test_wrap_at_width():
    term = make_terminal(4, 3)
    term.print("abcd")
    assert (term.column, term.row) == (0, 1)
    assert term.screen.text_row(0) == "abcd"


def test_scroll_when_screen_full():
    term = make_terminal(4, 2)
    term.print("abcd")
    term.print("efgh")
    assert term.row == 1
    assert term.column == 0
    assert term.screen.text_row(0) == "efgh"
    assert term.screen.text_row(1) == "    "


def test_write_and_printc():
    term = make_terminal()
    term.write("hello", 3, VgaColor.WHITE)
    assert term.screen.text_row(0).startswith("hel")
    with pytest.raises(ValueError):
        term.write("hi", 5, VgaColor.WHITE)
    term.clear(VgaColor.BLACK)
    term.printc("ab\0cd", VgaColor.WHITE)
    assert term.column == 2


def test_print_int_and_hex():
    term = make_terminal(20, 3)
    term.print_int(-42)
    assert term.screen.text_row(0).startswith("-42")
    term.clear(VgaColor.BLACK)
    term.print_hex(0)
    assert term.screen.text_row(0).startswith("0x0 ")
    term.clear(VgaColor.BLACK)
    term.print_hex(0x1A2B)
    assert term.screen.text_row(0).startswith("0x1a2b ")


def test_printf_counts_and_colors():
    term = make_terminal(20, 3)
    count = term.printf("%d-%s", 7, "ab")
    assert count == 4
    assert term.screen.text_row(0).startswith("7-ab")
    assert term.screen.cells[0] >> 8 == VgaColor.WHITE


def test_clear_homes_cursor():
    term = make_terminal()
    term.print("xyz")
    term.clear(VgaColor.BLUE)
    assert (term.column, term.row) == (0, 0)
    assert term.screen.cursor == (0, 0)
    assert term.screen.text_row(0) == " " * 10


def test_input_basic_and_history():
    term = make_terminal()
    assert term.input("hi\n") == "hi"
    assert list(term.history) == ["hi"]
    assert term.screen.text_row(0).startswith("hi")


def test_input_backspace():
    term = make_terminal()
    assert term.input("abc\b\bd\n") == "ad"
    assert term.screen.text_row(0).startswith("ad ")


def test_input_buffer_limit_and_control_chars():
    term = make_terminal()
    assert term.input("a\x01bcd\n", buffer_size=3) == "ab"
    with pytest.raises(ValueError):
        term.input("x\n", buffer_size=0)


def test_history_recall_up_and_down():
    term = make_terminal(20, 3)
    term.input("ls\n")
    term.input("cd\n")
    term.clear(VgaColor.BLACK)
    assert term.input(["x", Key.UP, "\n"]) == "cd"
    assert term.screen.text_row(0).startswith("cd ")
    assert term.input([Key.UP, Key.UP, Key.UP, Key.UP, "\n"]) == "ls"
    assert term.input(["q", Key.UP, Key.DOWN, "\n"]) == "q"
    assert term.input([Key.LEFT, "w", Key.RIGHT, "\n"]) == "w"


def test_history_keeps_last_entries_and_skips_empty():
    term = make_terminal(50, 3)
    for i in range(HISTORY_SIZE + 2):
        term.input(f"{i}\n")
    term.input("\n")
    assert len(term.history) == HISTORY_SIZE
    assert term.history[0] == "2"
    assert term.history[-1] == str(HISTORY_SIZE + 1)


def test_draw_cursor_swaps_and_restores():
    term = make_terminal()
    term.clear(vga_entry_color(VgaColor.WHITE, VgaColor.BLUE))
    term.screen.put("x", vga_entry_color(VgaColor.WHITE, VgaColor.BLUE), 0, 0)
    original = term.screen.cells[0]
    term.draw_cursor(0, 0, True)
    cell = term.screen.cells[0]
    assert cell & 0xFF == ord("x")
    assert (cell >> 8) & 0x0F == VgaColor.BLUE
    assert cell >> 12 == VgaColor.WHITE
    second = term.screen.cells[1]
    term.draw_cursor(1, 0, True)
    assert term.screen.cells[0] == original
    term.draw_cursor(1, 0, False)
    assert term.screen.cells[1] == second
    assert term.mouse_cursor.is_drawn is False


def test_draw_cursor_out_of_range():
    term = make_terminal()
    with pytest.raises(ValueError):
        term.draw_cursor(10, 0, True)


def test_mouse_event_draws_pointer():
    term = make_terminal()
    term.on_mouse_event(MouseEvent(x=2, y=1))
    assert term.mouse_cursor.is_drawn
    assert (term.mouse_cursor.x, term.mouse_cursor.y) == (2, 1)


def test_scroll_up_and_down():
    term = make_terminal(3, 3)
    term.print("abcdef")
    term.scroll_up(1)
    assert term.screen.text_row(0) == "   "
    assert term.screen.text_row(1) == "abc"
    assert term.screen.text_row(2) == "def"
    assert term.screen.cells[0] >> 8 == VgaColor.GREEN

    term = make_terminal(3, 3)
    term.print("abcdef")
    term.scroll_down(1)
    assert term.screen.text_row(0) == "def"
    assert term.screen.cells[-1] >> 8 == VgaColor.GREEN