import numpy as np
import pytest
from PIL import Image

from watermarker.core.datatypes import (
    GridPlacement, InvalidInputError, Pixel, SinglePlacement, TransparencyConfig
)
from watermarker.run import interactive_session, main


@pytest.fixture
def images(tmp_path):
    Image.new("RGB", (4, 4), (255, 0, 0)).save(tmp_path / "base.png")
    Image.new("RGB", (2, 2), (0, 0, 255)).save(tmp_path / "mark.png")
    Image.new("RGBA", (2, 2), (0, 0, 255, 0)).save(tmp_path / "mark_alpha.png")
    return tmp_path


def scripted(answers):
    answers = iter(answers)
    prompts = []
    return (lambda: next(answers)), prompts.append, prompts


def test_interactive_single_with_color_key(images):
    ask, say, prompts = scripted([
        str(images / "base.png"), str(images / "mark.png"),
        "yes", "10 20 30", "50", "single", "1 1", str(images / "out.png"),
    ])
    job = interactive_session(ask, say)
    assert job.placement == SinglePlacement(1, 1)
    assert job.transparency == TransparencyConfig(color_key=Pixel(10, 20, 30))
    assert job.blend.transparency_percent == 50
    assert prompts == [
        "Input the image filename:",
        "Input the watermark image filename:",
        "Do you want to set a transparency color?",
        "Input a transparency color ([Red] [Green] [Blue]):",
        "Input the watermark transparency percentage (Integer 0-100):",
        "Choose the position method (single, grid):",
        "Input the watermark position ([x 0-2] [y 0-2]):",
        "Input the output image filename (jpg or png extension):",
    ]


def test_interactive_alpha_prompt_for_alpha_watermarks(images):
    ask, say, prompts = scripted([
        str(images / "base.png"), str(images / "mark_alpha.png"),
        "yes", "100", "grid", str(images / "out.jpg"),
    ])
    job = interactive_session(ask, say)
    assert "Do you want to use the watermark's Alpha channel?" in prompts
    assert job.transparency == TransparencyConfig(use_alpha_channel=True)
    assert job.placement == GridPlacement()


def test_interactive_stops_at_first_invalid_answer(images):
    ask, say, prompts = scripted([
        str(images / "base.png"), str(images / "mark.png"), "no", "abc",
    ])
    with pytest.raises(InvalidInputError, match="isn't an integer number"):
        interactive_session(ask, say)
    assert prompts[-1] == "Input the watermark transparency percentage (Integer 0-100):"


def test_main_interactive(images, monkeypatch, capsys):
    answers = iter([
        str(images / "base.png"), str(images / "mark.png"), "no", "50", "single", "1 1",
        str(images / "out.png"),
    ])
    monkeypatch.setattr("builtins.input", lambda: next(answers))
    assert main([]) == 0
    assert f"The watermarked image {images / 'out.png'} has been created." in capsys.readouterr().out
    with Image.open(images / "out.png") as img:
        assert img.getpixel((1, 1)) == (127, 0, 127)


def test_main_flags(images, capsys):
    out = images / "grid.png"
    code = main([
        "--image", str(images / "base.png"), "--watermark", str(images / "mark.png"),
        "-o", str(out), "-t", "100", "--placement", "grid", "--threads", "2",
    ])
    assert code == 0
    with Image.open(out) as img:
        assert np.all(np.asarray(img) == np.array([0, 0, 255]))


def test_main_config(images, capsys):
    config = images / "job.yaml"
    config.write_text(
        "input_file: base.png\n"
        "watermark_file: mark.png\n"
        "output_file: job.png\n"
        "transparency_percent: 0\n"
        "placement:\n"
        "  method: grid\n"
    )
    assert main(["--config", str(config)]) == 0
    with Image.open(images / "job.png") as img:
        assert np.all(np.asarray(img) == np.array([255, 0, 0]))


@pytest.mark.parametrize("extra, message", [
    (["-t", "101"], "The transparency percentage is out of range."),
    (["--position", "3", "0"], "The position input is out of range."),
    (["-o", "out.bmp"], 'The output file extension isn\'t "jpg" or "png".'),
])
def test_main_reports_errors(images, capsys, extra, message):
    args = ["--image", str(images / "base.png"), "--watermark", str(images / "mark.png"),
            "-o", str(images / "out.png")] + extra
    assert main(args) == 1
    assert message in capsys.readouterr().out


def test_main_missing_file(images, capsys):
    missing = images / "missing.png"
    args = ["--image", str(missing), "--watermark", str(images / "mark.png"), "-o", "x.png"]
    assert main(args) == 1
    assert f"The file {missing} doesn't exist." in capsys.readouterr().out


def test_main_reports_bad_config_values(images, capsys):
    config = images / "job.yaml"
    config.write_text(
        "input_file: base.png\n"
        "watermark_file: mark.png\n"
        "output_file: 12\n"
        "transparency_percent: 50\n"
        "placement:\n"
        "  method: grid\n"
    )
    assert main(["--config", str(config)]) == 1
    assert "'output_file' must be a file path" in capsys.readouterr().out
