from mapscript.editing.lines import join_document, split_document
from mapscript.editing.patchers import (
    UNSET,
    PatchResult,
    set_cluster_label,
    set_cluster_style,
    set_edge,
    set_node_label,
    set_node_style,
)
from mapscript.editing.settings_block import (
    split_styles_and_contents,
    upsert_settings_block,
)
from mapscript.editing.structure import (
    add_quick_links,
    delete_cluster,
    delete_edge_line,
    delete_node_everywhere,
    group_nodes_into_cluster,
)
