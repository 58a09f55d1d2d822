"""Tests for the Data and DataList dataset views."""

import pytest

from genodata.compression import CompressionType
from genodata.dataset import Data, DataList
from genodata.errors import DataViewError
from genodata.location import DataFile


@pytest.fixture
def reads(registry):
    return registry.get_data_format_from_name("reads")


@pytest.fixture
def genome(registry):
    return registry.get_data_format_from_name("genome")


class TestSingleFileData:
    def test_file_named_from_context(self, tmp_path, genome):
        data = Data(genome, name="g1", step_id="step", port_name="output", directory=tmp_path)

        assert data.data_file_count == 1
        assert data.data_filename == "step_output_genome_g1.fasta"
        assert data.data_file == DataFile(tmp_path, "step_output_genome_g1.fasta")

    def test_compression_is_part_of_the_name(self, tmp_path, genome):
        data = Data(
            genome,
            name="g1",
            step_id="step",
            port_name="output",
            directory=tmp_path,
            compression=CompressionType.GZIP,
        )
        assert data.data_filename == "step_output_genome_g1.fasta.gz"

    def test_explicit_files(self, tmp_path, genome):
        data = Data(genome, [DataFile(tmp_path / "hg38.fa")], name="hg38")
        assert data.data_file.name == "hg38.fa"
        assert data.is_one_file_per_analysis
        assert not data.is_list
        assert data.list_elements == [data]

    def test_no_file(self, genome):
        with pytest.raises(DataViewError, match="No file"):
            Data(genome, name="g1").data_file

    def test_data_file_at_is_for_multi_file_formats(self, tmp_path, genome):
        data = Data(genome, [DataFile(tmp_path / "hg38.fa")])
        with pytest.raises(DataViewError, match="multi-file"):
            data.data_file_at(0)

    def test_set_data_file(self, tmp_path, genome):
        data = Data(genome, [DataFile(tmp_path / "a.fa")])
        data.set_data_file(DataFile(tmp_path / "b.fa"))
        assert data.data_file.name == "b.fa"

        with pytest.raises(DataViewError):
            data.set_data_file(DataFile(tmp_path / "c.fa"), 1)

    def test_duplicate_files_rejected(self, tmp_path, genome):
        with pytest.raises(ValueError):
            Data(genome, [DataFile(tmp_path / "a.fa"), DataFile(tmp_path / "a.fa")])


class TestMultiFileData:
    def test_files_created_in_order(self, tmp_path, reads):
        data = Data(reads, name="s1", step_id="filterreads", port_name="output", directory=tmp_path)
        assert data.data_file_count == 0

        assert data.data_file_at(0).name == "filterreads_output_reads_s1_file0.fastq"
        assert data.data_file_at(1).name == "filterreads_output_reads_s1_file1.fastq"
        assert data.data_file_count == 2
        assert data.data_filename_at(1) == "filterreads_output_reads_s1_file1.fastq"

        # Existing indexes are returned, not recreated
        assert data.data_file_at(0) is data.data_files[0]

    def test_part_in_name(self, tmp_path, reads):
        data = Data(
            reads, name="s1", part=3, step_id="filterreads", port_name="output", directory=tmp_path
        )
        assert data.data_file_at(0).name == "filterreads_output_reads_s1_file0_part3.fastq"

    def test_index_gap_rejected(self, tmp_path, reads):
        data = Data(reads, name="s1", step_id="filterreads", port_name="output", directory=tmp_path)
        with pytest.raises(DataViewError, match="is not created"):
            data.data_file_at(1)

    def test_negative_index_rejected(self, tmp_path, reads):
        data = Data(reads, name="s1", step_id="filterreads", port_name="output", directory=tmp_path)
        with pytest.raises(DataViewError, match="lower than 0"):
            data.data_file_at(-1)

    def test_max_files_count(self, tmp_path, reads):
        data = Data(reads, name="s1", step_id="filterreads", port_name="output", directory=tmp_path)
        data.data_file_at(0)
        data.data_file_at(1)
        with pytest.raises(DataViewError, match="more than 2 files"):
            data.data_file_at(2)

    def test_cannot_create_without_context(self, reads):
        data = Data(reads, name="s1")
        with pytest.raises(DataViewError, match="unknown"):
            data.data_file_at(0)

    def test_data_file_is_for_single_file_formats(self, tmp_path, reads):
        data = Data(reads, [DataFile(tmp_path / "r1.fq"), DataFile(tmp_path / "r2.fq")])
        with pytest.raises(DataViewError, match="data_file_at"):
            data.data_file
        assert data.data_file_at(1).name == "r2.fq"


class TestRenaming:
    def test_rename_before_use(self, tmp_path, genome):
        data = Data(genome, name="g1", step_id="step", port_name="output", directory=tmp_path)
        data.name = "g2"
        data.part = 0
        assert data.data_filename == "step_output_genome_g2_part0.fasta"

    def test_rename_after_use(self, tmp_path, genome):
        data = Data(genome, name="g1", step_id="step", port_name="output", directory=tmp_path)
        data.data_file
        with pytest.raises(DataViewError, match="renamed"):
            data.name = "g2"
        with pytest.raises(DataViewError, match="renamed"):
            data.part = 1

    def test_invalid_name(self, genome):
        with pytest.raises(DataViewError, match="Invalid data name"):
            Data(genome, name="g_1")

        data = Data(genome, name="g1")
        with pytest.raises(DataViewError, match="Invalid data name"):
            data.name = "g 2"

    def test_metadata_is_copied(self, genome):
        metadata = {"Reads": "s1.fq"}
        data = Data(genome, metadata=metadata)
        data.metadata["Condition"] = "wt"
        assert metadata == {"Reads": "s1.fq"}


class TestDataList:
    def test_elements_share_context(self, tmp_path, genome):
        data_list = DataList(genome, name="genomes", step_id="step", port_name="output", directory=tmp_path)
        data_list.add_data("g1")
        data_list.add_data("g2")

        assert data_list.is_list
        assert len(data_list) == 2
        assert [d.data_filename for d in data_list] == [
            "step_output_genome_g1.fasta",
            "step_output_genome_g2.fasta",
        ]

    def test_duplicate_element(self, genome):
        data_list = DataList(genome)
        data_list.add_data("g1")
        data_list.add_data("g1", part=1)
        with pytest.raises(DataViewError, match="already contains"):
            data_list.add_data("g1")

    def test_no_data_file(self, genome):
        with pytest.raises(DataViewError):
            DataList(genome).data_file

    def test_list_elements_is_a_copy(self, genome):
        data_list = DataList(genome)
        data_list.add_data("g1")
        data_list.list_elements.clear()
        assert len(data_list) == 1
