import io
import json

import PIL.Image
import pypdf
import pytest

import conftest
import salon_report_engine as sre
import salon_report_engine.cli


#============================================
def test_parse_render_args() -> None:
	args = sre.cli.parse_args(
		["render", "hairstylist", "report.json", "-o", "out.pdf", "-R", "result.png", "-w", "-t", "2.5"]
	)
	assert args.command == "render"
	assert args.kind == "hairstylist"
	assert args.result_path == "result.png"
	assert args.watermark_result is True
	assert args.strict_diagrams is False
	assert args.diagram_timeout == 2.5
	config = sre.cli.build_render_config(args, title="T")
	assert config.geometry.margin == 15.0
	assert config.skip_failed_diagrams is True


#============================================
def test_parse_rejects_unknown_kind() -> None:
	with pytest.raises(SystemExit):
		sre.cli.parse_args(["render", "barber", "report.json", "-o", "out.pdf"])


#============================================
def test_render_command_writes_pdf(tmp_path, capsys: pytest.CaptureFixture) -> None:
	report_path = tmp_path / "report.json"
	report_path.write_text(json.dumps(conftest.hairstylist_payload()), encoding="utf-8")
	result_path = tmp_path / "result.png"
	result_path.write_bytes(conftest.make_png((300, 400), (90, 60, 40)))
	output_path = tmp_path / "plano.pdf"

	sre.cli.main(
		["render", "hairstylist", str(report_path), "-o", str(output_path), "-R", str(result_path), "-w"]
	)
	reader = pypdf.PdfReader(io.BytesIO(output_path.read_bytes()))
	assert len(reader.pages) >= 1
	out = capsys.readouterr().out
	assert "Report kind: hairstylist" in out
	assert f"Pages written: {len(reader.pages)}" in out


#============================================
def test_watermark_command(tmp_path) -> None:
	input_path = tmp_path / "in.png"
	input_path.write_bytes(conftest.make_png((500, 400), (0, 0, 0)))
	logo_path = tmp_path / "logo.png"
	logo_path.write_bytes(conftest.make_png((20, 10), (255, 255, 255, 255), mode="RGBA"))
	output_path = tmp_path / "out.png"

	sre.cli.main(
		["watermark", str(input_path), "-o", str(output_path), "-l", str(logo_path), "-A", "top-left", "-a", "1.0"]
	)
	image = PIL.Image.open(output_path)
	assert image.size == (500, 400)
	# 15 px padding, 75x37.5 px box in the top left corner
	assert image.getpixel((40, 25)) == (255, 255, 255)
	assert image.getpixel((480, 380)) == (0, 0, 0)
