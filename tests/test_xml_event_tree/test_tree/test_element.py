"""Tests for XMLElement and XMLAttribute."""

import pytest

from xml_event_tree.tree import XMLAttribute, XMLElement


class TestXMLAttribute:
    """Attribute validation."""

    def test_attribute_pair(self) -> None:
        """Test an attribute exposes its name/value pair."""
        assert XMLAttribute("id", "1").as_pair() == ("id", "1")

    def test_empty_name_raises_error(self) -> None:
        """Test an empty attribute name raises ValueError."""
        with pytest.raises(ValueError, match="Attribute name cannot be empty"):
            XMLAttribute("", "x")

    def test_non_string_value_raises_error(self) -> None:
        """Test non-string values raise TypeError."""
        with pytest.raises(TypeError, match="must be strings"):
            XMLAttribute("n", 3)  # type: ignore


class TestXMLElement:
    """Element construction, contents, attributes and navigation."""

    def test_element_creation_with_valid_data(self) -> None:
        """Test creating XMLElement with attributes and contents."""
        element = XMLElement("root", attributes={"id": "test"}, contents="content")

        assert element.name == "root"
        assert element.get_attribute("id") == "test"
        assert element.contents == "content"
        assert element.has_contents
        assert element.parent is None

    def test_empty_name_raises_error(self) -> None:
        """Test that an empty name raises ValueError."""
        with pytest.raises(ValueError, match="Element name cannot be empty"):
            XMLElement("")

    def test_name_is_read_only(self) -> None:
        """Test the element name cannot be reassigned."""
        element = XMLElement("fixed")
        with pytest.raises(AttributeError):
            element.name = "other"  # type: ignore

    def test_contents_tri_state(self) -> None:
        """Test absent, empty and non-empty contents stay distinct."""
        element = XMLElement("e")
        assert element.contents is None
        assert element.is_empty

        element.contents = ""
        assert element.contents == ""
        assert element.has_contents
        assert not element.is_empty

        element.free_contents()
        assert element.contents is None

    def test_append_and_trim_contents(self) -> None:
        """Test appending chunks and trimming them."""
        element = XMLElement("e")
        element.append_contents("  a")
        element.append_contents("b  ")

        assert element.trim_contents()
        assert element.contents == "ab"

    def test_duplicate_attributes_are_kept(self) -> None:
        """Test adding an existing attribute name appends another pair."""
        element = XMLElement("e", attributes=[("a", "1")])
        element.add_attribute("a", "2")

        assert [attr.value for attr in element.attributes] == ["1", "2"]
        assert element.get_attribute("a") == "1"

    def test_set_attribute_updates_first_match(self) -> None:
        """Test set_attribute replaces the first value or appends."""
        element = XMLElement("e", attributes=[("a", "1"), ("a", "2")])
        element.set_attribute("a", "x")
        element.set_attribute("b", "y")

        assert [attr.as_pair() for attr in element.attributes] == [
            ("a", "x"), ("a", "2"), ("b", "y"),
        ]

    def test_remove_attribute_removes_all_matches(self) -> None:
        """Test remove_attribute drops every pair with that name."""
        element = XMLElement("e", attributes=[("a", "1"), ("b", "2"), ("a", "3")])

        assert element.remove_attribute("a") == 2
        assert not element.has_attribute("a")
        assert element.has_attribute("b")

    def test_add_child_establishes_parent_relationship(self) -> None:
        """Test adding a child sets its parent back-reference."""
        parent = XMLElement("parent")
        child = parent.add_child(XMLElement("child"))

        assert parent.children == [child]
        assert child.parent is parent

    def test_add_child_with_invalid_type_raises_error(self) -> None:
        """Test adding a non-element raises TypeError."""
        with pytest.raises(TypeError, match="Child must be an XMLElement instance"):
            XMLElement("parent").add_child("nope")  # type: ignore

    def test_insert_and_remove_child(self) -> None:
        """Test inserting at an index and removing a child."""
        parent = XMLElement("p", children=[XMLElement("a"), XMLElement("c")])
        middle = XMLElement("b")
        parent.insert_child(1, middle)

        assert [child.name for child in parent.children] == ["a", "b", "c"]
        assert parent.remove_child(middle)
        assert middle.parent is None
        assert not parent.remove_child(middle)

    def test_insert_child_with_invalid_index_raises_error(self) -> None:
        """Test inserting beyond the end raises IndexError."""
        with pytest.raises(IndexError, match="Child index out of range"):
            XMLElement("p").insert_child(3, XMLElement("c"))

    def test_navigation(self) -> None:
        """Test find helpers, iteration order, depth and path."""
        root = XMLElement("root")
        first = root.add_child(XMLElement("item", attributes={"id": "1"}))
        second = root.add_child(XMLElement("item", attributes={"id": "2"}))
        leaf = first.add_child(XMLElement("leaf"))

        assert [e.name for e in root.iter()] == ["root", "item", "leaf", "item"]
        assert root.find("leaf") is leaf
        assert root.find("root") is None
        assert root.find_all("item") == [first, second]
        assert root.find_child("item") is first
        assert root.find_by_attribute("id", "2") == [second]
        assert leaf.get_depth() == 2
        assert leaf.get_path() == "/root/item[1]/leaf"
        assert second.get_path() == "/root/item[2]"

    def test_is_mixed(self) -> None:
        """Test mixed content needs both children and contents."""
        element = XMLElement("m", contents="t")
        assert not element.is_mixed
        element.add_child(XMLElement("c"))
        assert element.is_mixed

    def test_release_tears_down_subtree_once(self) -> None:
        """Test release marks every node and refuses a second release."""
        root = XMLElement("root", contents="x")
        child = root.add_child(XMLElement("child"))

        root.release()

        assert root.released and child.released
        assert root.children == []
        assert root.contents is None
        with pytest.raises(RuntimeError, match="already released"):
            root.release()

    def test_release_detaches_from_parent(self) -> None:
        """Test releasing a child removes it from its parent."""
        root = XMLElement("root")
        child = root.add_child(XMLElement("child"))

        child.release()

        assert root.children == []
        assert not root.released

    def test_to_dict_conversion(self) -> None:
        """Test converting an element subtree to a dictionary."""
        root = XMLElement("root", attributes=[("a", "1")])
        root.add_child(XMLElement("c", contents=""))

        assert root.to_dict() == {
            "name": "root",
            "attributes": [("a", "1")],
            "children": [{"name": "c", "attributes": [], "contents": ""}],
        }
