"""
Main NiceGUI application for the graph editor.

Renders the document with ui.echart and wires the toolbar, the assistant
chat log, the save/load panel and the node/edge customiser to an
EditorSession. All graph logic lives in the graphai package; this file only
translates UI events into session calls and redraws.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import ui

from graphai.chart_builder import REQUESTED_EVENT_KEYS, build_echart_options, decode_click
from graphai.config import validate_api_key
from graphai.graph import EdgeKey
from graphai.session import EditorSession

load_dotenv()
logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

NODE_COLORS = ['#00d4ff', '#a855f7', '#22c55e', '#f59e0b', '#ef4444', '#ec4899', '#ffffff']
WELCOME = ("Hi! Describe a graph and I'll build it. Try 'binary tree with 7 nodes', "
           "'mutex graph' or 'random graph with 6 nodes'.")


@ui.page('/')
def main_page():
    state = {'chart': None, 'chat': None, 'saved': None, 'customizer': None}

    def post_assistant(message: str):
        if state['chat'] is not None:
            with state['chat']:
                ui.chat_message(message, name='Assistant', sent=False)

    session = EditorSession.from_config(notify=post_assistant)
    interaction = session.interaction
    customizer = session.customizer

    # --- Redraw ---

    def refresh():
        if state['chart'] is not None:
            options = build_echart_options(session.document, interaction.state)
            state['chart'].options.clear()
            state['chart'].options.update(options)
            state['chart'].update()
        undo_button.set_enabled(session.history.can_undo)
        redo_button.set_enabled(session.history.can_redo)
        edge_button.props(f"color={'positive' if interaction.state.is_drawing_edge else 'primary'}")

    def on_change(*_):
        refresh()
        render_customizer()

    # the customiser shows stored values, which undo and redo can change
    session.document.subscribe(on_change)
    interaction.set_on_state_change(on_change)

    # --- Toolbar actions ---

    def add_node():
        node_id = session.add_node()
        ui.notify(f"Added {session.document.get_node(node_id).label}", position='bottom-right')

    def toggle_edge_mode():
        result = interaction.toggle_edge_mode()
        if not result.ok:
            ui.notify(result.error.message, type='warning')
        elif interaction.state.is_drawing_edge:
            ui.notify('Click two nodes to create an edge', position='bottom-right')

    def delete_selected():
        removed = interaction.delete_selected()
        if removed:
            ui.notify(removed, position='bottom-right')

    def clear_graph():
        interaction.clear_graph()
        ui.notify('All nodes and edges removed', position='bottom-right')

    def undo():
        if not session.undo():
            ui.notify('Nothing to undo', color='grey')

    def redo():
        if not session.redo():
            ui.notify('Nothing to redo', color='grey')

    # --- Canvas events ---

    def handle_chart_click(e):
        event = decode_click(e.args, session.document)
        if event.kind == 'node':
            result = interaction.on_node_tap(event.node_id)
            if not result.ok:
                ui.notify(result.error.message, type='negative')
            elif result.value is not None:
                ui.notify(f"Connected {result.value.source} → {result.value.target}", type='positive')
        elif event.kind == 'edge':
            interaction.on_edge_tap(*event.edge)
        else:
            interaction.on_background_tap()

    def handle_keyboard(e):
        if not e.action.keydown:
            return
        key = e.key.name if hasattr(e.key, 'name') else str(e.key)
        if session.handle_shortcut(key, ctrl=e.modifiers.ctrl, meta=e.modifiers.meta, shift=e.modifiers.shift):
            return
        if key in ('Delete', 'Backspace'):
            delete_selected()
        elif key == 'Escape':
            interaction.cancel_edge_mode()
            interaction.clear_selection()

    # --- Chat ---

    async def send_command():
        text = (command_input.value or '').strip()
        if not text or session.pipeline.is_processing:
            return
        command_input.value = ''
        with state['chat']:
            ui.chat_message(text, name='You', sent=True)
        spinner.set_visibility(True)
        send_button.set_enabled(False)
        try:
            await session.submit_command(text)
        finally:
            spinner.set_visibility(False)
            send_button.set_enabled(True)

    # --- Save / load ---

    def render_saved():
        container = state['saved']
        if container is None or session.store is None:
            return
        container.clear()
        with container:
            graphs = session.store.list()
            if not graphs:
                ui.label('No saved graphs yet').classes('text-xs text-gray-400')
            for graph in sorted(graphs, key=lambda g: g.updated_at, reverse=True):
                with ui.row().classes('w-full items-center no-wrap gap-1'):
                    ui.label(f"{graph.name} ({len(graph.nodes)} nodes)").classes('text-sm flex-1 truncate')
                    ui.button(icon='file_open', on_click=lambda gid=graph.id: load_saved(gid)).props('flat dense size=sm')
                    ui.button(icon='save', on_click=lambda gid=graph.id: overwrite_saved(gid)).props('flat dense size=sm')
                    ui.button(icon='delete', on_click=lambda gid=graph.id: delete_saved(gid)).props('flat dense size=sm color=negative')

    def save_current():
        name = (save_name.value or '').strip()
        if not name:
            ui.notify('Please enter a name for the graph', type='warning')
            return
        session.save_graph(name)
        save_name.value = ''
        ui.notify(f"Saved '{name}'", type='positive')
        render_saved()

    def load_saved(graph_id: str):
        result = session.load_graph(graph_id)
        if result.ok:
            ui.notify(f"Loaded '{result.value.name}'", type='positive')
        else:
            ui.notify(result.error.message, type='negative')

    def overwrite_saved(graph_id: str):
        session.update_saved_graph(graph_id)
        ui.notify('Graph updated', type='positive')
        render_saved()

    def delete_saved(graph_id: str):
        session.delete_saved_graph(graph_id)
        render_saved()

    # --- Customiser ---

    def render_customizer():
        card = state['customizer']
        if card is None:
            return
        card.clear()
        customizer.load(interaction.state)
        target = customizer.target
        if target is None:
            card.set_visibility(False)
            return

        draft = customizer.values
        is_edge = isinstance(target, EdgeKey)
        with card:
            title = f"Edge {target.source} → {target.target}" if is_edge else f"Node {target}"
            ui.label(title).classes('text-sm font-bold')
            ui.input('Label', value=draft['label'] or '',
                     on_change=lambda e: customizer.set(label=(e.value or None) if is_edge else e.value)) \
                .classes('w-full')
            with ui.row().classes('gap-1'):
                for color in NODE_COLORS:
                    ui.button(on_click=lambda c=color: customizer.set(color=c)) \
                        .props(f'round dense size=xs style="background:{color} !important"')
            if is_edge:
                ui.slider(min=1, max=10, value=draft['width'] or 2,
                          on_change=lambda e: customizer.set(width=e.value))
            else:
                ui.slider(min=20, max=100, value=draft['size'] or 50,
                          on_change=lambda e: customizer.set(size=e.value))
            with ui.row().classes('w-full justify-end'):
                ui.button('Reset', on_click=render_customizer).props('flat dense')
                ui.button('Apply', on_click=customizer.apply).props('dense')
        card.set_visibility(True)

    # --- Settings ---

    def open_settings():
        with ui.dialog() as dialog, ui.card().classes('w-96'):
            ui.label('OpenAI API key').classes('text-sm font-bold')
            key_input = ui.input('API key', password=True, password_toggle_button=True).classes('w-full')

            def apply_key():
                key = (key_input.value or '').strip()
                valid, message = validate_api_key(key)
                if not valid:
                    ui.notify(message, type='negative')
                    return
                session.use_api_key(key)
                ui.notify(message, type='positive')
                dialog.close()

            with ui.row().classes('w-full justify-end'):
                ui.button('Cancel', on_click=dialog.close).props('flat')
                ui.button('Save', on_click=apply_key)
        dialog.open()

    # --- Layout Construction ---

    ui.keyboard(on_key=handle_keyboard)

    with ui.header().classes('items-center bg-slate-900'):
        ui.label('GraphAI').classes('text-xl font-bold')
        ui.space()
        ui.button('Node', icon='add_circle', on_click=add_node).props('dense')
        edge_button = ui.button('Edge', icon='timeline', on_click=toggle_edge_mode).props('dense')
        ui.button(icon='delete', on_click=delete_selected).props('dense flat').tooltip('Delete selected')
        ui.button(icon='layers_clear', on_click=clear_graph).props('dense flat').tooltip('Clear graph')
        undo_button = ui.button(icon='undo', on_click=undo).props('dense flat').tooltip('Undo (Ctrl+Z)')
        redo_button = ui.button(icon='redo', on_click=redo).props('dense flat').tooltip('Redo (Ctrl+Y)')
        ui.button(icon='settings', on_click=open_settings).props('dense flat').tooltip('OpenAI settings')

    with ui.row().classes('w-full no-wrap gap-4'):
        with ui.column().classes('flex-1'):
            state['chart'] = ui.echart(build_echart_options(session.document)).classes('w-full h-[80vh]')
            state['chart'].on('chart:click', handle_chart_click, REQUESTED_EVENT_KEYS)
            state['customizer'] = ui.card().classes('w-80')
            state['customizer'].set_visibility(False)

        with ui.column().classes('w-96 gap-2'):
            with ui.card().classes('w-full'):
                ui.label('Assistant').classes('text-sm font-bold')
                state['chat'] = ui.scroll_area().classes('h-80')
                with state['chat']:
                    ui.chat_message(WELCOME, name='Assistant', sent=False)
                with ui.row().classes('w-full items-center no-wrap'):
                    command_input = ui.input(placeholder='Describe a graph...').classes('flex-1') \
                        .on('keydown.enter', send_command)
                    send_button = ui.button(icon='send', on_click=send_command).props('dense')
                    spinner = ui.spinner(size='sm')
                    spinner.set_visibility(False)

            with ui.card().classes('w-full'):
                ui.label('Saved graphs').classes('text-sm font-bold')
                with ui.row().classes('w-full items-center no-wrap'):
                    save_name = ui.input(placeholder='Graph name').classes('flex-1')
                    ui.button(icon='save', on_click=save_current).props('dense')
                state['saved'] = ui.column().classes('w-full gap-1')
                render_saved()

    refresh()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='GraphAI',
        port=8081,
        reload=not getattr(sys, 'frozen', False),
        dark=True,
    )
