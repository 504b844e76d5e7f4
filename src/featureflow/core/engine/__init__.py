"""
Engine do featureflow.

Este pacote contém a implementação responsável por **construir**,
**executar** e **materializar** o grafo de um node terminal.

Componentes principais:
    - graph     → sub-grafo mínimo, detecção de ciclos e ordem topológica
    - scheduler → execução sequencial com memoização e run ativa
    - engine    → fachada registry → graph → scheduler → versioner

Princípios fundamentais:
    - Construção do grafo e execução são responsabilidades separadas
    - Erros estruturais surgem antes de qualquer execução
    - A ordem de execução é determinística para o mesmo grafo

Limites explícitos:
    - Não define nodes de domínio
    - Não implementa backends de storage
"""
