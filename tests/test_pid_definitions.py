################################################################################
# File Name: test_pid_definitions.py
# Purpose/Description: Tests for PID definitions and engine profiles
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 Marine OBD-II Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-19    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
Tests for the pids package (definitions, lookup and engine profiles).

Run with:
    pytest tests/test_pid_definitions.py -v
"""

import logging
import sys
from pathlib import Path

import pytest

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from marine_obd.pids import (
    ENGINE_PROFILES,
    GENERIC_MANUFACTURER,
    GENERIC_MODEL,
    EngineProfile,
    PidDefinition,
    PidLookup,
    createLinearMapping,
    createProfile,
    findPidsByName,
    getAllManufacturers,
    getAllPids,
    getModelsForManufacturer,
    getPidDefinition,
    getProfile,
)
from marine_obd.protocol.exceptions import InvalidPidError


# ================================================================================
# Definition Table Tests
# ================================================================================

class TestPidDefinitions:
    """Tests for the built-in PID table."""

    @pytest.mark.parametrize('pid, data, expected', [
        ('0C', (0x1A, 0xF8), 1726),
        ('05', (0x7B,), 83),
        ('04', (0xFF,), 100),
        ('42', (0x35, 0xB6), 13.75),
        ('5E', (0x00, 0xC8), 10),
        ('1F', (0x04, 0xB0), 1200),
        ('23', (0x0B, 0xB8), 30000),
        ('22:0545', (0x00, 0x64), 1.0),
    ])
    def test_decode_knownBytes_returnsValue(self, pid: str, data: tuple, expected: float):
        """
        Given: Raw bytes for a built-in PID
        When: The definition decodes them
        Then: Returns the documented value
        """
        definition = getPidDefinition(pid)

        assert definition.byteLength == len(data)
        assert definition.decode(data) == pytest.approx(expected)

    def test_getPidDefinition_caseInsensitive(self):
        """
        Given: Lower-case identifier
        When: getPidDefinition is called
        Then: Finds the definition
        """
        assert getPidDefinition('0c').name == 'Engine Speed'
        assert getPidDefinition('ff') is None

    def test_getAllPids_includesMode22(self):
        """
        Given: The built-in table
        When: getAllPids is called
        Then: Mode 01 and Mode 22 identifiers are present and sorted
        """
        pids = getAllPids()

        assert '0C' in pids
        assert '22:0545' in pids
        assert pids == sorted(pids)

    def test_findPidsByName_substring_returnsMatches(self):
        """
        Given: A name fragment
        When: findPidsByName is called
        Then: Returns every definition whose name contains it
        """
        identifiers = [d.identifier for d in findPidsByName('fuel rate')]

        assert '5E' in identifiers
        assert '9E' in identifiers
        assert '0C' not in identifiers

    def test_toDict_omitsDecodeFunction(self):
        """
        Given: A definition
        When: toDict is called
        Then: Returns the descriptive fields only
        """
        assert getPidDefinition('05').toDict() == {
            'identifier': '05',
            'name': 'Engine Coolant Temperature',
            'byteLength': 1,
            'unit': '°C',
        }


class TestPidLookup:
    """Tests for PidLookup class."""

    def test_lookup_builtIn_returnsDefinition(self, pidLookup: PidLookup):
        """
        Given: Default lookup
        When: lookup is called with padding and lower-case
        Then: Returns the built-in definition
        """
        assert pidLookup.lookup(' 0c ').identifier == '0C'
        assert '0C' in pidLookup
        assert 'FE' not in pidLookup

    def test_register_customPid_isInstanceScoped(self):
        """
        Given: Two lookups
        When: A definition is registered on one
        Then: The other is not affected
        """
        first = PidLookup()
        second = PidLookup()
        definition = PidDefinition('22:1234', 'Trim Angle', 1, '%', lambda d: d[0])

        first.register(definition)

        assert first.lookup('22:1234') is definition
        assert second.lookup('22:1234') is None
        assert len(first) == len(second) + 1

    def test_register_malformedIdentifier_raises(self, pidLookup: PidLookup):
        """
        Given: Definition with a malformed identifier
        When: register is called
        Then: Raises InvalidPidError
        """
        with pytest.raises(InvalidPidError):
            pidLookup.register(PidDefinition('XYZ', 'Bad', 1, '', lambda d: d[0]))


# ================================================================================
# Engine Profile Tests
# ================================================================================

class TestEngineProfile:
    """Tests for EngineProfile dataclass."""

    def test_init_duplicates_droppedWithWarning(self, caplog: pytest.LogCaptureFixture):
        """
        Given: PID list with a duplicate in different case
        When: EngineProfile is created
        Then: The duplicate is dropped, first occurrence kept, warning logged
        """
        with caplog.at_level(logging.WARNING):
            profile = EngineProfile('Test', 'test', ['0C', '05', '0c'])

        assert profile.supportedPids == ['0C', '05']
        assert 'Duplicate PID 0C' in caplog.text

    def test_init_malformedPid_raises(self):
        """
        Given: PID list with a malformed identifier
        When: EngineProfile is created
        Then: Raises InvalidPidError
        """
        with pytest.raises(InvalidPidError):
            EngineProfile('Test', 'test', ['0C', 'ZZZ'])

    def test_remap_withoutMapping_returnsValue(self):
        """
        Given: Profile without mappings
        When: remap is called
        Then: Value is unchanged
        """
        profile = EngineProfile('Test', 'test', ['0C'])

        assert profile.remap('0C', 1726) == 1726

    def test_createLinearMapping_appliesScaleAndOffset(self):
        """
        Given: Mapping with scale and offset
        When: Applied
        Then: Returns value * scale + offset
        """
        mapping = createLinearMapping(scale=2.0, offset=-10.0)

        assert mapping(50) == 90

    def test_toDict_listsMappedPids(self):
        """
        Given: Profile with one mapping
        When: toDict is called
        Then: customMappings lists the mapped identifiers
        """
        profile = createProfile(['0C', '05'], customMappings={'05': createLinearMapping()})

        result = profile.toDict()

        assert result['supportedPids'] == ['0C', '05']
        assert result['customMappings'] == ['05']
        assert result['manufacturer'] == 'Custom'


class TestProfileCatalogue:
    """Tests for the built-in marine engine profiles."""

    def test_getAllManufacturers_includesMarineBrands(self):
        """
        Given: The built-in catalogue
        When: getAllManufacturers is called
        Then: All marine manufacturers and the generic profile are listed
        """
        manufacturers = getAllManufacturers()

        for name in ('Volvo Penta', 'Yanmar', 'Mercury', 'Caterpillar', 'Cummins',
                     'John Deere', 'MAN', 'MTU', 'Hyundai', GENERIC_MANUFACTURER):
            assert name in manufacturers

    def test_getProfile_caseInsensitive_returnsCopy(self):
        """
        Given: Manufacturer and model in odd case
        When: getProfile is called twice
        Then: Returns equal but independent copies
        """
        first = getProfile('volvo penta', 'D4-300')
        second = getProfile('Volvo Penta', 'd4-300')

        first.supportedPids.append('46')

        assert second.model == 'd4-300'
        assert '46' not in second.supportedPids
        assert '46' not in ENGINE_PROFILES['Volvo Penta']['d4-300'].supportedPids

    def test_getProfile_unknown_fallsBackToGeneric(self, caplog: pytest.LogCaptureFixture):
        """
        Given: Unknown manufacturer
        When: getProfile is called
        Then: Returns the generic profile with a warning
        """
        with caplog.at_level(logging.WARNING):
            profile = getProfile('Acme', 'x1')

        assert profile.manufacturer == GENERIC_MANUFACTURER
        assert profile.model == GENERIC_MODEL
        assert 'No profile for Acme/x1' in caplog.text

    def test_getProfile_hyundai_containsMode22(self):
        """
        Given: Hyundai SeasAll S250
        When: getProfile is called
        Then: The manufacturer fuel consumption PIDs are included
        """
        profile = getProfile('Hyundai', 'seasall-s250')

        assert '22:0545' in profile.supportedPids

    def test_everyProfilePid_hasDefinition(self, pidLookup: PidLookup):
        """
        Given: Every built-in profile
        When: Its PIDs are looked up
        Then: Each one has a definition
        """
        for models in ENGINE_PROFILES.values():
            for profile in models.values():
                for pid in profile.supportedPids:
                    assert pid in pidLookup, f"{profile.manufacturer}/{profile.model}: {pid}"

    def test_getModelsForManufacturer_returnsSummaries(self):
        """
        Given: Known and unknown manufacturers
        When: getModelsForManufacturer is called
        Then: Returns model summaries or an empty list
        """
        models = getModelsForManufacturer('mtu')

        assert {m['model'] for m in models} == {'series-2000', 'series-4000'}
        assert all(m['pidCount'] > 0 for m in models)
        assert getModelsForManufacturer('Acme') == []
