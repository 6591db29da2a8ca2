import pytest

from buildforge.builder.compatibility import (
    check_socket,
    evaluate,
    minimum_wattage,
    recommended_wattage,
    validate_build,
)
from buildforge.builder.overlay import ConfidenceOverlay
from buildforge.schemas import BuildConfiguration


def _build(**parts) -> BuildConfiguration:
    build = BuildConfiguration()
    for category, component in parts.items():
        build = build.with_component(category, component)
    return build


@pytest.fixture
def am5_cpu(make_component):
    return make_component("cpu", "AMD Ryzen 5 7600", 199, "AMD", {"socket": "AM5", "power_draw": 65})


@pytest.fixture
def am4_board(make_component):
    return make_component(
        "motherboard",
        "ASUS TUF Gaming B550-PLUS",
        129,
        "ASUS",
        {"socket": "AM4", "chipset": "B550", "memory_types": ["DDR4"]},
    )


@pytest.fixture
def ddr5_board(make_component):
    return make_component(
        "motherboard",
        "MSI PRO B650M-A",
        139,
        "MSI",
        {"socket": "AM5", "chipset": "B650", "memory_types": ["DDR5"], "max_memory_gb": 64},
    )


def test_socket_mismatch_is_critical(am5_cpu, am4_board):
    result = evaluate(_build(cpu=am5_cpu, motherboard=am4_board))

    assert result.compatible is False
    assert [i.type for i in result.issues] == ["socket"]
    assert "AM5" in result.issues[0].message


def test_socket_rule_is_symmetric(am5_cpu, am4_board, make_component):
    unknown_cpu = make_component("cpu", "Mystery Chip X", 100)

    assert check_socket(am5_cpu, am4_board) == check_socket(am4_board, am5_cpu)
    assert check_socket(unknown_cpu, am4_board) == check_socket(am4_board, unknown_cpu)


def test_unknown_socket_is_warning_only(am4_board, make_component):
    unknown_cpu = make_component("cpu", "Mystery Chip X", 100)

    result = evaluate(_build(cpu=unknown_cpu, motherboard=am4_board))

    assert result.compatible is True
    assert result.issues == []
    assert any(w.type == "socket" and "Could not verify" in w.message for w in result.warnings)


def test_socket_inferred_from_names(make_component):
    cpu = make_component("cpu", "AMD Ryzen 7 7700X", 299, "AMD")
    board = make_component("motherboard", "ASUS TUF Gaming B650-PLUS WIFI", 189, "ASUS")

    result = evaluate(_build(cpu=cpu, motherboard=board))

    assert result.issues == []
    assert not any(w.type == "socket" for w in result.warnings)


def test_socket_matching_ignores_case_and_punctuation(make_component):
    cpu = make_component("cpu", "Intel Core i5-13400", 189, "Intel", {"socket": "lga 1700"})
    board = make_component("motherboard", "Gigabyte B760M DS3H", 109, "Gigabyte", {"socket": "LGA-1700"})

    assert check_socket(cpu, board) == []


def test_socket_matching_tolerates_containment(make_component):
    cpu = make_component("cpu", "AMD Ryzen Threadripper 7960X", 1499, "AMD", {"socket": "sTR5"})
    board = make_component("motherboard", "ASUS Pro WS TRX50-SAGE", 899, "ASUS", {"socket": "TR5"})
    cooler = make_component("cooler", "Workstation Tower", 99, specs={"sockets": ["TR5"]})

    assert check_socket(cpu, board) == []
    assert check_socket(board, cpu) == []
    result = evaluate(_build(cpu=cpu, motherboard=board, cooler=cooler))
    assert result.compatible is True


def test_older_chipset_needs_bios_warning(make_component):
    cpu = make_component("cpu", "Intel Core i5-14400", 219, "Intel", {"socket": "LGA1700"})
    board = make_component("motherboard", "ASUS PRIME H610M-E D4", 89, "ASUS", {"socket": "LGA1700"})

    result = evaluate(_build(cpu=cpu, motherboard=board))

    assert result.compatible is True
    assert [w.type for w in result.warnings] == ["bios"]


def test_ddr5_board_with_ddr4_memory_has_one_memory_issue(ddr5_board, make_component):
    memory = make_component(
        "memory", "Kingston FURY Beast 32GB DDR4-3200", 64, "Kingston", {"memory_type": "DDR4"}
    )

    result = evaluate(_build(motherboard=ddr5_board, memory=memory))

    assert result.compatible is False
    assert len(result.issues) == 1
    assert result.issues[0].type == "memory"
    assert result.issues[0].severity == "critical"


def test_memory_speed_over_limit_is_warning(ddr5_board, make_component):
    memory = make_component("memory", "Corsair Vengeance 32GB DDR5-7200", 129, "Corsair")

    result = evaluate(_build(motherboard=ddr5_board, memory=memory))

    assert result.compatible is True
    assert any(w.type == "memory" and "7200" in w.message for w in result.warnings)


def test_memory_capacity_over_limit_is_critical(ddr5_board, make_component):
    memory = make_component(
        "memory",
        "G.SKILL Trident Z5 128GB (4x32GB) DDR5-5200",
        399,
        "G.SKILL",
    )

    result = evaluate(_build(motherboard=ddr5_board, memory=memory))

    assert result.compatible is False
    assert any("128 GB" in i.message for i in result.issues)


def test_unknown_memory_type_is_warning(ddr5_board, make_component):
    memory = make_component("memory", "Value RAM 16GB", 30)

    result = evaluate(_build(motherboard=ddr5_board, memory=memory))

    assert result.compatible is True
    assert [w.type for w in result.warnings] == ["memory"]


@pytest.fixture
def power_build_parts(make_component):
    cpu = make_component("cpu", "Intel Core i7-14700K", 399, "Intel", {"socket": "LGA1700", "power_draw": 125})
    gpu = make_component("gpu", "GeForce RTX 4080", 999, "NVIDIA", {"power_draw": 320})
    return cpu, gpu


def test_600w_supply_is_insufficient(power_build_parts, make_component):
    cpu, gpu = power_build_parts
    psu = make_component("psu", "Generic 600W", 60, specs={"wattage": 600})

    result = evaluate(_build(cpu=cpu, gpu=gpu, psu=psu))

    assert result.power_draw == 125 + 320 + 120
    assert result.compatible is False
    assert any(i.type == "power" for i in result.issues)


def test_750w_supply_is_enough(power_build_parts, make_component):
    cpu, gpu = power_build_parts
    psu = make_component("psu", "Corsair RM750e 750W", 99, "Corsair", {"wattage": 750})

    result = evaluate(_build(cpu=cpu, gpu=gpu, psu=psu))

    assert not any(i.type == "power" for i in result.issues)
    assert not any(w.type == "power" for w in result.warnings)


def test_supply_between_thresholds_is_warning(power_build_parts, make_component):
    cpu, gpu = power_build_parts
    psu = make_component("psu", "Generic 650W", 65, specs={"wattage": 650})

    result = evaluate(_build(cpu=cpu, gpu=gpu, psu=psu))

    assert result.compatible is True
    assert [w.type for w in result.warnings] == ["power"]


def test_wattage_thresholds_round_up():
    assert minimum_wattage(565) == 622
    assert recommended_wattage(565) == 678
    assert minimum_wattage(500) == 550
    assert recommended_wattage(500) == 600


def test_estimated_wattage_and_memory_draw(power_build_parts, make_component):
    cpu, gpu = power_build_parts
    memory = make_component("memory", "Corsair 32GB DDR5-6000", 99, "Corsair")

    result = evaluate(_build(cpu=cpu, gpu=gpu, memory=memory))

    # 32GB DDR5 -> 4 × 4W
    assert result.power_draw == 125 + 320 + 120 + 16
    assert result.estimated_wattage == recommended_wattage(result.power_draw)


def test_psu_wattage_read_from_name(power_build_parts, make_component):
    cpu, gpu = power_build_parts
    psu = make_component("psu", "EVGA 600 BR 600W", 54, "EVGA")

    result = evaluate(_build(cpu=cpu, gpu=gpu, psu=psu))

    assert any(i.type == "power" for i in result.issues)


def test_high_power_gpu_adds_note(make_component):
    gpu = make_component("gpu", "GeForce RTX 4090", 1799, "NVIDIA")

    result = evaluate(_build(gpu=gpu))

    assert result.compatible is True
    assert [n.type for n in result.notes] == ["power"]


class TestCoolerRule:
    """散热器扣具检查 - Cooler socket checks"""

    def test_declared_mismatch_is_critical(self, am5_cpu, make_component):
        cooler = make_component("cooler", "ID-COOLING SE-224-XTS", 22, specs={"sockets": ["LGA1700", "LGA1200"]})

        result = evaluate(_build(cpu=am5_cpu, cooler=cooler))

        assert result.compatible is False
        assert result.issues[0].type == "socket"

    def test_am4_mount_fits_am5(self, am5_cpu, make_component):
        cooler = make_component("cooler", "Old AM4 Tower", 25, specs={"sockets": ["AM4"]})

        result = evaluate(_build(cpu=am5_cpu, cooler=cooler))

        assert result.issues == []
        assert result.warnings == []

    def test_universal_cooler_is_note(self, am5_cpu, make_component):
        cooler = make_component("cooler", "Thermalright Peerless Assassin 120 SE", 35, "Thermalright")

        result = evaluate(_build(cpu=am5_cpu, cooler=cooler))

        assert result.issues == []
        assert result.warnings == []
        assert [n.type for n in result.notes] == ["socket"]

    def test_undeclared_sockets_without_evidence_is_warning(self, am5_cpu, make_component):
        cooler = make_component("cooler", "Budget Tower 90", 15)

        result = evaluate(_build(cpu=am5_cpu, cooler=cooler), ConfidenceOverlay())

        assert result.compatible is True
        assert [w.type for w in result.warnings] == ["socket"]
        assert "learned" in result.warnings[0].details

    def test_undeclared_sockets_with_evidence_is_note(self, am5_cpu, make_component):
        cooler = make_component("cooler", "Budget Tower 90", 15)
        overlay = ConfidenceOverlay()
        overlay.record_observation(cooler.name, am5_cpu.name, verified=True)

        result = evaluate(_build(cpu=am5_cpu, cooler=cooler), overlay)

        assert result.warnings == []
        assert [n.type for n in result.notes] == ["socket"]


class TestClearanceRule:
    """机箱空间检查 - Case clearance checks"""

    def test_long_gpu_is_warning_not_critical(self, make_component):
        gpu = make_component("gpu", "Big Card", 999, specs={"length_mm": 340, "power_draw": 250})
        case = make_component("case", "Compact Case", 79, specs={"max_gpu_length_mm": 330})

        result = evaluate(_build(gpu=gpu, case=case))

        assert result.compatible is True
        assert [w.type for w in result.warnings] == ["physical"]

    def test_default_clearance_by_case_size(self, make_component):
        gpu = make_component("gpu", "Mid Card", 499, specs={"length_mm": 320, "power_draw": 200})
        itx = make_component("case", "Tiny Mini-ITX Case", 99)
        atx = make_component("case", "Roomy Tower", 99, specs={"form_factor": "ATX"})

        assert [w.type for w in evaluate(_build(gpu=gpu, case=itx)).warnings] == ["physical"]
        assert evaluate(_build(gpu=gpu, case=atx)).warnings == []

    def test_tall_air_cooler_is_warning(self, make_component):
        cooler = make_component("cooler", "Tall Tower", 60, specs={"height_mm": 170, "cooler_type": "air"})
        case = make_component("case", "Slim Case", 70, specs={"max_cooler_height_mm": 160})

        result = evaluate(_build(cooler=cooler, case=case))

        assert [w.type for w in result.warnings] == ["physical"]

    def test_atx_board_in_micro_atx_case_is_warning(self, make_component):
        board = make_component("motherboard", "Full Board", 150, specs={"form_factor": "ATX"})
        case = make_component("case", "Small Case", 60, specs={"form_factor": "Micro-ATX"})

        result = evaluate(_build(motherboard=board, case=case))

        assert result.compatible is True
        assert [w.type for w in result.warnings] == ["physical"]


def test_compatible_iff_no_issues(am5_cpu, am4_board, ddr5_board, make_component):
    ddr4 = make_component("memory", "DDR4 Kit 16GB DDR4-3200", 40)
    builds = [
        _build(),
        _build(cpu=am5_cpu),
        _build(cpu=am5_cpu, motherboard=am4_board),
        _build(cpu=am5_cpu, motherboard=ddr5_board),
        _build(motherboard=ddr5_board, memory=ddr4),
        _build(motherboard=am4_board, memory=ddr4),
    ]
    for build in builds:
        result = evaluate(build)
        assert result.compatible == (len(result.issues) == 0)
        assert all(i.severity == "critical" for i in result.issues)
        assert all(w.severity == "warning" for w in result.warnings)


def test_report_is_idempotent(json_catalog):
    build = BuildConfiguration()
    for component_id in ["cpu-ryzen5-7600", "mb-gigabyte-b760m", "mem-corsair-ddr5-6000", "gpu-gigabyte-rtx4090"]:
        component = json_catalog.find_by_id(component_id)
        build = build.with_component(component.category, component)

    first = validate_build(build)
    second = validate_build(build)

    assert first == second
    assert first.compatible is False


def test_validate_build_reports_learned_incompatibility(am5_cpu, ddr5_board):
    overlay = ConfidenceOverlay()
    overlay.record_observation(am5_cpu.name, ddr5_board.name, compatible=False, verified=True)

    result = validate_build(_build(cpu=am5_cpu, motherboard=ddr5_board), overlay)

    assert result.compatible is True
    assert any("reported incompatible" in w.message for w in result.warnings)


def test_high_power_gpu_is_a_note_not_a_warning(make_component):
    gpu = make_component("gpu", "GeForce RTX 4090", 1799, "NVIDIA", {"power_draw": 450})

    result = evaluate(_build(gpu=gpu))

    assert result.compatible is True
    assert result.warnings == []
    assert [n.type for n in result.notes] == ["power"]
